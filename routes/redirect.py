from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from slowapi.util import get_remote_address

from routes.limiter import limiter, redirect_rate_limit
from services.container import Services, get_services
from services.exceptions import ShortCodeNotFoundError
from services.validation import SHORT_CODE_PATTERN

redirect_router = APIRouter(tags=["Redirects"])


@redirect_router.get("/{short_code}", include_in_schema=False)
@limiter.limit(redirect_rate_limit)
async def redirect_short_code(
    request: Request,
    short_code: str,
    services: Services = Depends(get_services),
):
    # anything that cannot be a short code is a plain 404, no store lookup
    if not SHORT_CODE_PATTERN.fullmatch(short_code):
        raise ShortCodeNotFoundError(short_code)
    target = await services.click_recorder.record_click(
        short_code,
        ip=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
    )
    return RedirectResponse(url=target.original_url, status_code=302)
