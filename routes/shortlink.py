from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from slowapi.util import get_remote_address

from routes.limiter import create_rate_limit, limiter
from schemas.shortlink_schemas import (
    AllLinksResponse,
    ClickLeaderboardResponse,
    ClickStatsResponse,
    DailyClicksOut,
    ErrorResponse,
    LinksByIpResponse,
    MessageResponse,
    OverviewResponse,
    ShortLinkCreateRequest,
    ShortLinkCreateResponse,
    ShortLinkInfoResponse,
    ShortLinkOut,
)
from services.container import Services, get_services

router = APIRouter(prefix="/api/shortlink", tags=["Short Links"])


def _short_url(request: Request, services: Services, short_code: str) -> str:
    base = services.settings.public_base_url or str(request.base_url)
    return f"{base.rstrip('/')}/{short_code}"


@router.post(
    "/create",
    response_model=ShortLinkCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 409: {"model": ErrorResponse},
               429: {"model": ErrorResponse}},
)
@limiter.limit(create_rate_limit)
async def create_short_link(
    request: Request,
    response: Response,
    payload: ShortLinkCreateRequest,
    services: Services = Depends(get_services),
) -> ShortLinkCreateResponse:
    created = await services.link_service.create_link(
        original_url=payload.original_url,
        custom_code=payload.custom_code,
        ip=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
    )
    if created.existing:
        response.status_code = status.HTTP_200_OK
    return ShortLinkCreateResponse(
        short_code=created.link.short_code,
        short_url=_short_url(request, services, created.link.short_code),
        original_url=created.link.original_url,
        accepted=True,
        existing=created.existing,
    )


@router.get("/info/{short_code}", response_model=ShortLinkInfoResponse, responses={404: {"model": ErrorResponse}})
async def get_short_link_info(
    short_code: str,
    days: Optional[int] = Query(None, ge=1, le=365, description="Day buckets to return"),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
) -> ShortLinkInfoResponse:
    link = await services.link_service.get_link(short_code)
    day_window = days or services.settings.click_history_days
    history = await services.click_recorder.get_click_history(short_code, day_window=day_window, offset=offset)
    return ShortLinkInfoResponse(
        **ShortLinkOut.model_validate(link).model_dump(),
        click_history=[DailyClicksOut.model_validate(bucket) for bucket in history],
        days=day_window,
        offset=offset,
    )


# Declared before /stats/{short_code} so "overview" and "clicks" are not taken as codes
@router.get("/stats/overview", response_model=OverviewResponse)
async def get_overview(services: Services = Depends(get_services)) -> OverviewResponse:
    return OverviewResponse.model_validate(await services.link_service.overview())


@router.get("/stats/clicks", response_model=ClickLeaderboardResponse)
async def get_click_leaderboard(services: Services = Depends(get_services)) -> ClickLeaderboardResponse:
    return ClickLeaderboardResponse.model_validate(await services.link_service.click_leaderboard())


@router.get("/all", response_model=AllLinksResponse)
async def list_all_links(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
) -> AllLinksResponse:
    links = await services.link_service.list_all_links(limit=limit, offset=offset)
    return AllLinksResponse(
        links=[ShortLinkOut.model_validate(link) for link in links],
        total=len(links),
        limit=limit,
        offset=offset,
    )


@router.get("/stats/{short_code}", response_model=ClickStatsResponse, responses={404: {"model": ErrorResponse}})
async def get_daily_stats(
    short_code: str,
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    services: Services = Depends(get_services),
) -> ClickStatsResponse:
    stats = await services.click_recorder.get_daily_stats(short_code, day=day, start=start_date, end=end_date)
    return ClickStatsResponse.model_validate(stats)


@router.patch(
    "/deactivate/{short_code}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def deactivate_short_link(
    request: Request,
    short_code: str,
    services: Services = Depends(get_services),
) -> MessageResponse:
    await services.link_service.deactivate_link(short_code, ip=get_remote_address(request))
    return MessageResponse(success=True, detail="Link deactivated successfully")


@router.get("/by-ip/{ip}", response_model=LinksByIpResponse)
async def list_links_by_ip(
    ip: str,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
) -> LinksByIpResponse:
    links = await services.link_service.list_links_by_ip(ip, limit=limit, offset=offset)
    return LinksByIpResponse(
        ip_address=ip,
        blocked=await services.escalation.is_blocked(ip),
        links=[ShortLinkOut.model_validate(link) for link in links],
        total=len(links),
        limit=limit,
        offset=offset,
    )
