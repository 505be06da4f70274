from .app import QuestionCard, QuizGenApp, build_request

__all__ = ["QuizGenApp", "QuestionCard", "build_request"]
