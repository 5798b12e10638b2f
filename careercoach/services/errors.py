"""Failures raised by the assessment workflow.

Each error carries a fixed ``user_message`` that is safe to show to the
caller. Internal details stay in the exception args and in the logs.
"""


class AssessmentError(Exception):
    user_message = "Something went wrong. Please try again."


class AuthenticationRequired(AssessmentError):
    user_message = "Authentication required"


class ServiceOverloaded(AssessmentError):
    user_message = "The AI service is currently overloaded. Please try again in a few moments."


class ServiceMisconfigured(AssessmentError):
    user_message = "AI service configuration error. Please contact support."


class GenerationFailed(AssessmentError):
    user_message = "Failed to generate assessment. Please try again."


class ResponseParseFailure(AssessmentError):
    user_message = "Failed to process AI response. Please try again."


class AssessmentNotFound(AssessmentError):
    user_message = "Assessment not found or you don't have permission to access it"


class EmptyQuestionSet(AssessmentError):
    user_message = "This assessment has no questions to score."
