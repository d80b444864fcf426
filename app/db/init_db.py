# app/db/init_db.py
import re
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security_password import hash_password
from app.models.course import Course, CourseModality, CourseSession, PaymentPlan
from app.models.token_counter import TokenCounter
from app.models.user import User, UserRole

_PLANS_300 = [
    ("Mensal", 1, "300", None),
    ("Bimestral (5% OFF)", 2, "570", "5"),
    ("Trimestral (5% OFF)", 3, "855", "5"),
    ("1º Semestre (5 meses)", 5, "1425", "5"),
    ("2º Semestre (4 meses)", 4, "1140", "5"),
    ("Anual (10% OFF)", 9, "2430", "10"),
]

COURSE_CATALOG = [
    {
        "id": "redacao",
        "title": "Redação",
        "modality": CourseModality.REDACAO,
        "description": "Metodologia autoral focada em repertório atualizado, simulados guiados e correções premium.",
        "materials": "Apostila proprietária, simulados semanais comentados e banco de temas inéditos.",
        "audience": "Ensino Fundamental e Ensino Médio",
        "bonus_limit": 10,
        "sessions": [
            ("R1", "Terça-feira", "18:00", "19:30", "Ensino Médio", 18),
            ("R3", "Terça-feira", "19:30", "21:00", "Ensino Médio", 18),
            ("R2", "Quinta-feira", "18:00", "19:30", "Ensino Médio", 18),
            ("R4", "Quinta-feira", "19:30", "21:00", "Ensino Médio", 18),
            ("R5", "Sábado", "09:30", "11:00", "Ensino Médio", 20),
            ("R6", "Sábado", "11:00", "12:30", "Ensino Médio", 20),
            ("R7", "Sábado", "17:30", "19:00", "Ensino Médio", 18),
            ("R8", "Sábado", "14:30", "15:30", "Ensino Fundamental", 16),
            ("R9", "Sábado", "15:30", "17:00", "Ensino Fundamental", 16),
        ],
        "plans": _PLANS_300,
    },
    {
        "id": "exatas",
        "title": "Exatas (Química, Física e Matemática)",
        "modality": CourseModality.EXATAS,
        "description": "Acompanhamento integrado de Química, Física e Matemática com simulados multidisciplinares.",
        "materials": "Mapas mentais, videoaulas on-demand e plantões de dúvidas semanais.",
        "audience": "Ensino Médio",
        "bonus_limit": None,
        "sessions": [
            ("EX1", "Segunda-feira", "19:00", "22:00", "Ensino Médio", 24),
        ],
        "plans": [
            ("Mensal", 1, "350", None),
            ("Bimestral (5% OFF)", 2, "665", "5"),
            ("Trimestral (5% OFF)", 3, "997.5", "5"),
            ("1º Semestre (5 meses)", 5, "1662.5", "5"),
            ("2º Semestre (4 meses)", 4, "1330", "5"),
            ("Anual (10% OFF)", 9, "2835", "10"),
        ],
    },
    {
        "id": "matematica",
        "title": "Matemática",
        "modality": CourseModality.MATEMATICA,
        "description": "Turmas que combinam exercícios progressivos, trilhas de aprendizado e metas individuais.",
        "materials": "Trilhas gamificadas, listas semanais comentadas e simulados bimestrais.",
        "audience": "Ensino Fundamental e Ensino Médio",
        "bonus_limit": None,
        "sessions": [
            ("M1", "Quarta-feira", "19:40", "20:10", "Ensino Médio", 16),
            ("M2", "Sábado", "07:30", "09:00", "Ensino Médio", 16),
            ("M3", "Sábado", "18:40", "19:40", "Ensino Fundamental", 16),
        ],
        "plans": _PLANS_300,
    },
    {
        "id": "gramatica",
        "title": "Gramática",
        "modality": CourseModality.GRAMATICA,
        "description": "Gramática aplicada, interpretação e oratória para a parte objetiva das provas.",
        "materials": "Apostilas, quizzes mobile, simulados objetivos e roteiros de estudos semanais.",
        "audience": "Ensino Médio",
        "bonus_limit": None,
        "sessions": [
            ("G1", "Sexta-feira", "19:30", "21:00", "Ensino Médio", 22),
        ],
        "plans": [
            ("Mensal", 1, "200", None),
            ("Bimestral (5% OFF)", 2, "380", "5"),
            ("Trimestral (5% OFF)", 3, "570", "5"),
            ("1º Semestre (5 meses)", 5, "950", "5"),
            ("2º Semestre (4 meses)", 4, "760", "5"),
            ("Anual (10% OFF)", 9, "1620", "10"),
        ],
    },
]

DEMO_USERS = [
    ("Secretaria", "admin@demo.com", "admin123", UserRole.ADMIN),
    ("Aluno Demo", "aluno@demo.com", "aluno123", UserRole.STUDENT),
]

def plan_slug(course_id: str, label: str) -> str:
    return f"{course_id}-" + re.sub(r"[^a-z0-9]+", "-", label.lower())

def _seed_course(db: Session, data: dict) -> None:
    course = db.get(Course, data["id"])
    if not course:
        course = Course(
            id=data["id"],
            title=data["title"],
            modality=data["modality"],
            description=data["description"],
            materials=data["materials"],
            audience=data["audience"],
            bonus_limit=data["bonus_limit"],
            bonus_awarded=0,
            is_active=True,
        )
        db.add(course); db.flush()

    # capacidade é editada pelo admin: turmas existentes não são sobrescritas
    existing = set(db.scalars(select(CourseSession.code).where(CourseSession.course_id == course.id)).all())
    for code, weekday, start, end, level, capacity in data["sessions"]:
        if code in existing:
            continue
        db.add(CourseSession(
            course_id=course.id, code=code, weekday=weekday,
            start_time=start, end_time=end, level=level, capacity=capacity,
        ))

    for label, months, price, discount in data["plans"]:
        plan_id = plan_slug(course.id, label)
        if db.get(PaymentPlan, plan_id):
            continue
        db.add(PaymentPlan(
            id=plan_id, course_id=course.id, label=label, months=months,
            price=Decimal(price), discount_pct=Decimal(discount) if discount else None,
            is_active=True,
        ))

def init_db(db: Session) -> None:
    for data in COURSE_CATALOG:
        _seed_course(db, data)

    for name, email, password, role in DEMO_USERS:
        user = db.scalar(select(User).where(User.email == email))
        if not user:
            db.add(User(name=name, email=email, hashed_password=hash_password(password), role=role))

    if not db.get(TokenCounter, 1):
        db.add(TokenCounter(id=1, last_number=0))

    db.commit()
