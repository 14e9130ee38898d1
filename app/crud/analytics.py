#app/crud/analytics.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any, Dict, List
import logging

from app.models.user import User
from app.models.template import Template
from app.models.form import Form, Answer
from app.core.answer_values import (
    MultiChoiceValue,
    NumberValue,
    SingleChoiceValue,
    TextValue,
    load_answer_value,
)
from app.core.clock import utcnow
from app.core.enums import QuestionType

logger = logging.getLogger("FormBuilder.Analytics")

ACTIVE_WINDOW_DAYS = 30
DAILY_WINDOW_DAYS = 7
TOP_TEXT_ANSWERS = 5
TOP_TEMPLATES = 5


def _number_stats(values: List[float]) -> Dict[str, Any]:
    if not values:
        return {"average": None, "min": None, "max": None, "count": 0}
    return {
        "average": round(sum(values) / len(values), 2),
        "min": min(values),
        "max": max(values),
        "count": len(values),
    }


def _question_stats(question, stored_values: List[Any]) -> Dict[str, Any]:
    parsed = [load_answer_value(question.type, v) for v in stored_values]
    parsed = [v for v in parsed if not v.is_empty()]

    if question.type == QuestionType.NUMBER:
        return _number_stats([v.number for v in parsed if isinstance(v, NumberValue)])

    if question.type in (QuestionType.SELECT, QuestionType.RADIO, QuestionType.CHECKBOX):
        counts = Counter()
        for value in parsed:
            if isinstance(value, SingleChoiceValue):
                counts[value.option_id] += 1
            elif isinstance(value, MultiChoiceValue):
                counts.update(value.option_ids)
        return {
            "option_counts": [
                {"option_id": option.id, "value": option.value, "count": counts.get(option.id, 0)}
                for option in question.options
            ]
        }

    texts = Counter(v.text for v in parsed if isinstance(v, TextValue))
    return {
        "popular_answers": [
            {"value": text, "count": count} for text, count in texts.most_common(TOP_TEXT_ANSWERS)
        ]
    }


def get_template_analytics(db: Session, template: Template) -> Dict[str, Any]:
    """
    Агрегаты по шаблону: число форм, завершённых форм и статистика по каждому
    текущему вопросу.
    """
    form_count = db.query(Form).filter(Form.template_id == template.id).count()
    completed_count = (
        db.query(Form).filter(Form.template_id == template.id, Form.completed == True).count()
    )

    values_by_question: Dict[int, List[Any]] = defaultdict(list)
    rows = (
        db.query(Answer.question_id, Answer.value)
        .join(Form, Form.id == Answer.form_id)
        .filter(Form.template_id == template.id)
        .all()
    )
    for question_id, value in rows:
        values_by_question[question_id].append(value)

    question_analytics = [
        {
            "question_id": question.id,
            "question_title": question.title,
            "type": question.type,
            "stats": _question_stats(question, values_by_question.get(question.id, [])),
        }
        for question in template.questions
    ]
    return {
        "template_id": template.id,
        "form_count": form_count,
        "completed_count": completed_count,
        "question_analytics": question_analytics,
    }


def get_platform_stats(db: Session) -> Dict[str, Any]:
    """
    Статистика платформы для ADMIN: итоги, активные пользователи,
    топ шаблонов по числу форм, формы по дням за последнюю неделю.
    """
    now = utcnow()
    total_users = db.query(User).count()
    total_templates = db.query(Template).count()
    total_forms = db.query(Form).count()
    active_users = (
        db.query(User).filter(User.last_active >= now - timedelta(days=ACTIVE_WINDOW_DAYS)).count()
    )

    form_count = func.count(Form.id).label("form_count")
    popular = (
        db.query(Template.id, Template.title, form_count)
        .join(Form, Form.template_id == Template.id)
        .group_by(Template.id, Template.title)
        .order_by(form_count.desc(), Template.id.asc())
        .limit(TOP_TEMPLATES)
        .all()
    )

    start_day = now.date() - timedelta(days=DAILY_WINDOW_DAYS - 1)
    per_day = Counter()
    created = db.query(Form.created_at).filter(Form.created_at >= now - timedelta(days=DAILY_WINDOW_DAYS)).all()
    for (created_at,) in created:
        if created_at is not None and created_at.date() >= start_day:
            per_day[created_at.date()] += 1
    daily_forms = [
        {"date": start_day + timedelta(days=i), "count": per_day.get(start_day + timedelta(days=i), 0)}
        for i in range(DAILY_WINDOW_DAYS)
    ]

    return {
        "total_users": total_users,
        "total_templates": total_templates,
        "total_forms": total_forms,
        "active_users": active_users,
        "active_percentage": round(active_users / total_users * 100) if total_users else 0,
        "popular_templates": [
            {"id": template_id, "title": title, "form_count": count} for template_id, title, count in popular
        ],
        "daily_forms": daily_forms,
    }


def get_user_analytics(db: Session, user: User) -> Dict[str, Any]:
    rows = (
        db.query(Form.created_at, Template.title)
        .join(Template, Template.id == Form.template_id)
        .filter(Form.author_id == user.id)
        .order_by(Form.created_at.desc(), Form.id.desc())
        .all()
    )
    forms_by_template: Dict[str, int] = Counter(title for _, title in rows)
    return {
        "user_id": user.id,
        "total_forms": len(rows),
        "forms_by_template": dict(forms_by_template),
        "activity_timeline": [{"date": created_at, "template": title} for created_at, title in rows],
    }
