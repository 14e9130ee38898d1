#app/schemas/analytics.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from app.core.enums import QuestionType

class QuestionStats(BaseModel):
    """
    QuestionStats: агрегаты по вопросу. Набор ключей stats зависит от типа:
    NUMBER -> average/min/max/count; варианты выбора -> option_counts;
    текст -> popular_answers (топ-5).
    """
    question_id: int
    question_title: str
    type: QuestionType
    stats: Dict[str, Any] = Field(default_factory=dict)

class TemplateAnalytics(BaseModel):
    template_id: int
    form_count: int
    completed_count: int
    question_analytics: List[QuestionStats] = Field(default_factory=list)

class PopularTemplate(BaseModel):
    id: int
    title: str
    form_count: int

class DailyCount(BaseModel):
    date: date
    count: int

class PlatformStats(BaseModel):
    total_users: int
    total_templates: int
    total_forms: int
    active_users: int
    active_percentage: int
    popular_templates: List[PopularTemplate] = Field(default_factory=list)
    daily_forms: List[DailyCount] = Field(default_factory=list)

class ActivityItem(BaseModel):
    date: Optional[datetime] = None
    template: str

class UserAnalytics(BaseModel):
    user_id: int
    total_forms: int
    forms_by_template: Dict[str, int] = Field(default_factory=dict)
    activity_timeline: List[ActivityItem] = Field(default_factory=list)
