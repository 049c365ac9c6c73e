from fastapi import APIRouter, status

from dependencies.auth import CurrentUser
from dependencies.services import Library
from schemas.api import ApiResponse
from schemas.library import MindMap, MindMapCreate


router = APIRouter(prefix="/mind-maps", tags=["mind-maps"])


@router.get("", response_model=ApiResponse[list[MindMap]])
async def list_mind_maps(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[MindMap]]:
    mind_maps = await library.mind_maps_for(current_user.id)
    return ApiResponse(data=mind_maps, message="Mind maps retrieved")


@router.post(
    "", response_model=ApiResponse[MindMap], status_code=status.HTTP_201_CREATED
)
async def create_mind_map(
    payload: MindMapCreate, current_user: CurrentUser, library: Library
) -> ApiResponse[MindMap]:
    mind_map = await library.mind_maps.add(
        **payload.model_dump(), user_id=current_user.id, created_at=library.now()
    )
    return ApiResponse(data=mind_map, message="Mind map created")


@router.get("/{mind_map_id}", response_model=ApiResponse[MindMap])
async def get_mind_map(
    mind_map_id: int, current_user: CurrentUser, library: Library
) -> ApiResponse[MindMap]:
    mind_map = await library.mind_maps.require_visible(mind_map_id, current_user.id)
    return ApiResponse(data=mind_map, message="Mind map retrieved")
