from .base import Base
from .user import User
from .template import Template, template_access, template_tags
from .question import Question, QuestionOption
from .tag import Tag
from .form import Form, Answer
from .like import Like
from .comment import Comment
