from services.course_service import CourseService
from services.enrichment_service import EnrichmentService
from services.course_generation_service import CourseGenerationService
from services.learning_service import LearningService
from services.chat_service import ChatService, ChatSessionStore
from services.auth_service import AuthService

__all__ = [
    'CourseService',
    'EnrichmentService',
    'CourseGenerationService',
    'LearningService',
    'ChatService',
    'ChatSessionStore',
    'AuthService',
]
