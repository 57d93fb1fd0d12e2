# SQLAlchemy models
from .assessment import (
    Assessment,
    Question,
    QuestionBundle,
    QuestionBundleAssignment,
    QuestionBundleQuestion,
    QuestionGroup,
    Submission,
)
from .base import Base
from .course import Course, CourseUser, User
from .discussion import Topic, TopicSubscription
from .lesson_plan import (
    LessonPlanItem,
    PersonalTime,
    ReferenceTime,
    ReferenceTimeline,
)

__all__ = [
    # Base
    "Base",
    # Course
    "Course",
    "CourseUser",
    "User",
    # Assessment
    "Assessment",
    "Question",
    "QuestionBundle",
    "QuestionBundleAssignment",
    "QuestionBundleQuestion",
    "QuestionGroup",
    "Submission",
    # Lesson plan
    "LessonPlanItem",
    "PersonalTime",
    "ReferenceTime",
    "ReferenceTimeline",
    # Discussion
    "Topic",
    "TopicSubscription",
]
