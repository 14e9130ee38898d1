#app/models/form.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from app.models.base import Base

class Form(Base):
    """
    Form: одно заполнение шаблона пользователем. Жизненный цикл: draft -> completed
    (обратного перехода нет).
    """
    __tablename__ = "forms"

    id: int = Column(Integer, primary_key=True, index=True)
    template_id: int = Column(Integer, ForeignKey("templates.id", ondelete="CASCADE"), nullable=False, index=True, doc="Шаблон")
    author_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, doc="Автор")
    completed: bool = Column(Boolean, default=False, nullable=False, doc="Форма завершена")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    template = relationship("Template")
    author = relationship("User")
    answers = relationship("Answer", order_by="Answer.question_id", back_populates="form")

    def __repr__(self):
        return f"<Form(id={self.id}, template_id={self.template_id}, author_id={self.author_id}, completed={self.completed})>"


class Answer(Base):
    """
    Answer: ответ на вопрос внутри формы. Не более одного на (form_id, question_id).
    value хранится как JSON: строка, число, id опции или список id опций (по типу вопроса).
    """
    __tablename__ = "answers"

    id: int = Column(Integer, primary_key=True, index=True)
    form_id: int = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id: int = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(JSON, nullable=True, doc="Значение ответа")

    form = relationship("Form", back_populates="answers")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("form_id", "question_id", name="uq_answers_form_question"),
    )

    def __repr__(self):
        return f"<Answer(form_id={self.form_id}, question_id={self.question_id}, value={self.value!r})>"
