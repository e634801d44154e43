from fastapi import APIRouter

from app.engine.artifacts import FunctionalModule
from app.engine.catalog import DEFAULT_MODULES, LAYOUT_TEMPLATES, LayoutType

router = APIRouter()


@router.get("/modules", response_model=list[FunctionalModule])
def read_modules() -> list[FunctionalModule]:
    return list(DEFAULT_MODULES)


@router.get("/layouts")
def read_layouts() -> dict[LayoutType, str]:
    return LAYOUT_TEMPLATES
