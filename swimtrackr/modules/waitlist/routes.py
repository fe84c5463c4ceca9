from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from swimtrackr.config.settings import settings
from swimtrackr.core.rate_limit import limiter
from swimtrackr.modules.waitlist.schemas import WaitlistEntry, WaitlistResponse
from swimtrackr.modules.waitlist.service import WaitlistService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["waitlist"])


def get_waitlist_service() -> WaitlistService:
    return WaitlistService(settings)


def _message(text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": text})


@router.post("/waitlist", response_model=WaitlistResponse)
@limiter.limit(settings.waitlist_rate_limit)
async def join_waitlist(
    request: Request,
    service: WaitlistService = Depends(get_waitlist_service)
):
    """
    Public landing page signup. Always answers with `{"message": ...}`:
    200 on success, 400 for missing fields or a failed captcha, 500 otherwise.
    """
    try:
        body = await request.json()
        entry = WaitlistEntry(**body) if isinstance(body, dict) else WaitlistEntry()
        if not entry.is_complete:
            return _message("Missing required fields", 400)

        if not await service.verify_captcha(entry.captchaToken):
            return _message("Captcha verification failed", 400)

        await service.add_to_audience(entry)
        await service.send_confirmation(entry)
        return _message("Successfully joined waitlist", 200)
    except Exception as e:
        logger.error(f"Waitlist submission error: {e}")
        return _message("An error occurred while processing your request", 500)
