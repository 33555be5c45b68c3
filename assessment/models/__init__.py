from .submission import Submission
from .question import QuestionRecord
# base and mixins are imported by the above as needed
