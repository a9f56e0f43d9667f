"""FastAPI dependencies for assessments.

Provides dependency injection for:
- Assessment service
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import AssessmentError, AssessmentService


async def get_assessment_service(request: Request) -> AssessmentService:
    """Get assessment service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "assessment_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assessment service not available",
        )
    return app_state.assessment_service


AssessmentServiceDep = Annotated[AssessmentService, Depends(get_assessment_service)]


def handle_assessment_error(error: AssessmentError) -> HTTPException:
    """Convert assessment errors to HTTP exceptions."""
    status_map = {
        "assessment_not_found": status.HTTP_404_NOT_FOUND,
        "submission_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_day": status.HTTP_400_BAD_REQUEST,
        "assessment_closed": status.HTTP_400_BAD_REQUEST,
        "invalid_answers": status.HTTP_400_BAD_REQUEST,
        "invalid_grade": status.HTTP_400_BAD_REQUEST,
        "not_enrolled": status.HTTP_403_FORBIDDEN,
        "already_submitted": status.HTTP_409_CONFLICT,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
