#app/models/question.py
from sqlalchemy import (
    Column, Integer, String, Boolean, Enum, Text, ForeignKey, Index
)
from sqlalchemy.orm import relationship
from app.core.enums import QuestionType
from app.models.base import Base

class Question(Base):
    """
    Question: вопрос шаблона. order задаёт порядок отображения;
    options заполнены только для SELECT/RADIO/CHECKBOX.
    """
    __tablename__ = "questions"

    id: int = Column(Integer, primary_key=True, index=True)
    template_id: int = Column(Integer, ForeignKey("templates.id", ondelete="CASCADE"), nullable=False, index=True, doc="Шаблон")
    title: str = Column(String(255), nullable=False, doc="Текст вопроса")
    description: str = Column(Text, nullable=True, doc="Пояснение")
    type: QuestionType = Column(Enum(QuestionType, name="question_type"), nullable=False, doc="Тип вопроса")
    is_required: bool = Column(Boolean, default=True, nullable=False, doc="Обязательный вопрос")
    display_in_table: bool = Column(Boolean, default=False, nullable=False, doc="Показывать в таблице результатов")
    order: int = Column(Integer, nullable=False, default=0, doc="Порядковый номер")

    template = relationship("Template", back_populates="questions")
    options = relationship("QuestionOption", order_by="QuestionOption.order", back_populates="question")

    # ids не переиспользуются: замена вопросов даёт новые идентификаторы
    __table_args__ = (
        Index("ix_questions_template_order", "template_id", "order"),
        {"sqlite_autoincrement": True},
    )

    @property
    def option_ids(self):
        return [option.id for option in self.options]

    def __repr__(self):
        return f"<Question(id={self.id}, template_id={self.template_id}, type={self.type}, order={self.order})>"


class QuestionOption(Base):
    """Вариант ответа для вопросов с выбором."""
    __tablename__ = "question_options"

    id: int = Column(Integer, primary_key=True, index=True)
    question_id: int = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    value: str = Column(String(255), nullable=False, doc="Текст варианта")
    order: int = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="options")

    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self):
        return f"<QuestionOption(id={self.id}, question_id={self.question_id}, value='{self.value}')>"
