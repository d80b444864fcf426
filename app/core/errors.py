# app/core/errors.py
"""
Erros de domínio do serviço de pré-matrícula.

Os serviços levantam estes erros; as rotas não os capturam. O handler
registrado em app.main converte cada um no envelope padrão
{"code", "message", "details"} com o status HTTP correspondente.
"""
from typing import Any, Optional


class DomainError(Exception):
    code: str = "DOMAIN_ERROR"
    status_code: int = 400
    default_message: str = "Operação inválida."

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(DomainError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Registro não encontrado."


class PermissionDenied(DomainError):
    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "Acesso negado."


class Unauthenticated(DomainError):
    code = "UNAUTHENTICATED"
    status_code = 401
    default_message = "Usuário não autenticado."


class IncompatiblePlan(DomainError):
    code = "INCOMPATIBLE_PLAN"
    status_code = 422
    default_message = "Plano incompatível com a modalidade selecionada."


class InvalidCapacity(DomainError):
    code = "INVALID_CAPACITY"
    status_code = 422
    default_message = "A capacidade da turma deve ser no mínimo 1."


class InvalidRequest(DomainError):
    code = "INVALID_REQUEST"
    status_code = 400


class ConflictRetryable(DomainError):
    code = "CONFLICT_RETRY_EXHAUSTED"
    status_code = 409
    default_message = "Muitas alterações simultâneas. Tente novamente."
