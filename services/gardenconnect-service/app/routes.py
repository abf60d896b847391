import json

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from .config import MATCH_CACHE_TTL_SECONDS, MATCH_MIN_SCORE, MATCH_WEIGHTS
from .db import get_repositories
from .explain import explanation_text
from .rabbitmq import publisher
from .rbac import admin_only, staff_only
from .repositories import DuplicateError, Repositories
from .schemas import (
    AutoMatchResponse,
    CreateGarden,
    CreateMatchRequest,
    CreateVolunteer,
    GardenCreated,
    GardenOut,
    MatchCreated,
    MatchOut,
    Message,
    UpdateMatchStatus,
    VolunteerCreated,
    VolunteerOut,
)
from .scoring import InvalidInputError, MatchResult, find_matches, score
from .services import (
    cache_generation,
    cache_key,
    get_cached_result,
    invalidate_all,
    invalidate_garden,
    set_cache_with_index,
)
from .vocabulary import (
    DAY_OPTIONS,
    EXPERIENCE_LEVELS,
    MATCH_STATUSES,
    MATCH_TYPES,
    SKILL_OPTIONS,
    TIME_OPTIONS,
)

router = APIRouter(prefix="/api")


async def _volunteer_or_404(repos: Repositories, volunteer_id: int) -> dict:
    volunteer = await repos.volunteers.get(volunteer_id)
    if not volunteer:
        raise HTTPException(status_code=404, detail="Volunteer not found")
    return volunteer


async def _garden_or_404(repos: Repositories, garden_id: int) -> dict:
    garden = await repos.gardens.get(garden_id)
    if not garden:
        raise HTTPException(status_code=404, detail="Garden not found")
    return garden


def _volunteer_match(volunteer: dict, result: MatchResult) -> dict:
    return {
        "volunteer_id": volunteer["id"],
        "volunteer_name": volunteer["name"],
        "volunteer_email": volunteer["email"],
        "volunteer_skills": volunteer["skills"],
        "volunteer_availability": volunteer["availability"],
        "match_details": result.to_dict(),
        "explanation": explanation_text(result),
    }


# ---------------- form options ----------------

@router.get("/options")
async def options():
    return {
        "skills": list(SKILL_OPTIONS),
        "days": list(DAY_OPTIONS),
        "times": list(TIME_OPTIONS),
        "experience_levels": list(EXPERIENCE_LEVELS),
        "match_types": list(MATCH_TYPES),
        "match_statuses": list(MATCH_STATUSES),
    }


# ---------------- volunteers ----------------

@router.post("/volunteers", status_code=201, response_model=VolunteerCreated)
async def create_volunteer(data: CreateVolunteer, repos: Repositories = Depends(get_repositories)):
    try:
        volunteer = await repos.volunteers.create(
            {
                "name": data.name,
                "email": data.email,
                "skills": list(data.skills),
                "availability": [slot.model_dump() for slot in data.availability],
                "location": data.location,
                "experience_level": data.experience,
            }
        )
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    # a new volunteer can show up in any garden's ranking
    await invalidate_all()

    await publisher.publish_event(
        "volunteer.created",
        {
            "id": volunteer["id"],
            "name": volunteer["name"],
            "email": volunteer["email"],
            "skills": volunteer["skills"],
            "availability": volunteer["availability"],
        },
    )

    return {"message": "Thank you for signing up", "volunteer": volunteer}


@router.get("/volunteers", response_model=list[VolunteerOut])
async def list_volunteers(
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    return await repos.volunteers.list()


@router.get("/volunteers/{volunteer_id}", response_model=VolunteerOut)
async def get_volunteer(
    volunteer_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    return await _volunteer_or_404(repos, volunteer_id)


@router.delete("/volunteers/{volunteer_id}", response_model=Message)
async def delete_volunteer(
    volunteer_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(admin_only),
):
    if not await repos.volunteers.delete(volunteer_id):
        raise HTTPException(status_code=404, detail="Volunteer not found")

    await invalidate_all()
    return {"message": "Volunteer deleted"}


@router.get("/volunteers/{volunteer_id}/matches", response_model=list[MatchOut])
async def list_volunteer_matches(
    volunteer_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    await _volunteer_or_404(repos, volunteer_id)
    return await repos.matches.list_for_volunteer(volunteer_id)


# ---------------- gardens ----------------

@router.post("/gardens", status_code=201, response_model=GardenCreated)
async def create_garden(
    data: CreateGarden,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    garden = await repos.gardens.create(
        {
            "garden_name": data.garden_name,
            "location": data.location,
            "contact_email": data.contact_email,
            "skills_needed": list(data.skills_needed),
            "needs_schedule": [slot.model_dump() for slot in data.needs_schedule],
            "additional_notes": data.notes,
        }
    )

    await publisher.publish_event(
        "garden.created",
        {
            "id": garden["id"],
            "garden_name": garden["garden_name"],
            "location": garden["location"],
            "skills_needed": garden["skills_needed"],
            "needs_schedule": garden["needs_schedule"],
        },
    )

    return {"message": "Garden created", "garden": garden}


@router.get("/gardens", response_model=list[GardenOut])
async def list_gardens(
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    return await repos.gardens.list()


@router.get("/gardens/{garden_id}", response_model=GardenOut)
async def get_garden(
    garden_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    return await _garden_or_404(repos, garden_id)


@router.delete("/gardens/{garden_id}", response_model=Message)
async def delete_garden(
    garden_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    if not await repos.gardens.delete(garden_id):
        raise HTTPException(status_code=404, detail="Garden not found")

    await invalidate_garden(garden_id)
    return {"message": "Garden deleted"}


@router.get("/gardens/{garden_id}/matches", response_model=list[MatchOut])
async def list_garden_matches(
    garden_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    await _garden_or_404(repos, garden_id)
    return await repos.matches.list_for_garden(garden_id)


# ---------------- auto-match ----------------

@router.get("/match/{garden_id}", response_model=AutoMatchResponse)
async def auto_match(
    garden_id: int,
    min_score: float = Query(MATCH_MIN_SCORE, ge=0),
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    garden = await _garden_or_404(repos, garden_id)

    key = cache_key(garden_id, min_score, MATCH_WEIGHTS)
    cached = await get_cached_result(key)
    if cached:
        return json.loads(cached)

    generation = await cache_generation()
    volunteers = await repos.volunteers.list()
    try:
        ranked = find_matches(volunteers, garden, min_score=min_score, weights=MATCH_WEIGHTS)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    response = jsonable_encoder(
        {
            "garden": garden,
            "min_score": min_score,
            "matches": [_volunteer_match(v, result) for v, result in ranked],
        }
    )

    await set_cache_with_index(
        cache_key_str=key,
        value=json.dumps(response),
        ttl_seconds=MATCH_CACHE_TTL_SECONDS,
        garden_id=garden_id,
        generation=generation,
    )

    return response


# ---------------- matches ----------------

@router.post("/matches", status_code=201, response_model=MatchCreated)
async def create_match(
    data: CreateMatchRequest,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    volunteer = await _volunteer_or_404(repos, data.volunteer_id)
    garden = await _garden_or_404(repos, data.garden_id)

    try:
        result = score(volunteer, garden, MATCH_WEIGHTS)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        match = await repos.matches.create(
            {
                "volunteer_id": volunteer["id"],
                "garden_id": garden["id"],
                "match_type": data.match_type,
                "match_score": result.overall_score,
                "match_details": result.to_dict(),
                "notes": data.notes,
                "status": "pending",
            }
        )
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    await publisher.publish_event(
        "match.created",
        {
            "id": match["id"],
            "volunteer_id": match["volunteer_id"],
            "garden_id": match["garden_id"],
            "match_type": match["match_type"],
            "match_score": match["match_score"],
        },
    )

    return {"message": "Match created", "match": match}


@router.get("/matches", response_model=list[MatchOut])
async def list_matches(
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    return await repos.matches.list()


@router.get("/matches/{match_id}", response_model=MatchOut)
async def get_match(
    match_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    match = await repos.matches.get(match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.patch("/matches/{match_id}/status", response_model=MatchOut)
async def update_match_status(
    match_id: int,
    data: UpdateMatchStatus,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    match = await repos.matches.update_status(match_id, data.status, data.notes)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    await publisher.publish_event(
        "match.status_updated",
        {"id": match["id"], "status": match["status"], "notes": match["notes"]},
    )

    return match


@router.post("/matches/{match_id}/email-sent", response_model=MatchOut)
async def mark_match_email_sent(
    match_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    match = await repos.matches.mark_email_sent(match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    await publisher.publish_event(
        "match.email_sent",
        {
            "id": match["id"],
            "volunteer_email": match["volunteer_email"],
            "garden_name": match["garden_name"],
            "email_sent_at": match["email_sent_at"],
        },
    )

    return match


@router.delete("/matches/pair/{volunteer_id}/{garden_id}", response_model=Message)
async def delete_match_pair(
    volunteer_id: int,
    garden_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    if not await repos.matches.delete_pair(volunteer_id, garden_id):
        raise HTTPException(status_code=404, detail="Match not found")
    return {"message": "Match deleted"}


@router.delete("/matches/{match_id}", response_model=Message)
async def delete_match(
    match_id: int,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(staff_only),
):
    if not await repos.matches.delete(match_id):
        raise HTTPException(status_code=404, detail="Match not found")
    return {"message": "Match deleted"}
