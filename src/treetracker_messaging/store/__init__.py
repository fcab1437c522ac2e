from treetracker_messaging.store.database import Database
from treetracker_messaging.store.schema import Base, MessageRecord, QuestionRecord, SurveyRecord

__all__ = ["Database", "Base", "MessageRecord", "QuestionRecord", "SurveyRecord"]
