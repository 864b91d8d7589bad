from pathlib import Path
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

PAGES_DIR = Path(__file__).resolve().parent.parent / "pages"


def _page(name: str) -> HTMLResponse:
    return HTMLResponse((PAGES_DIR / name).read_text(encoding="utf-8"))


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def login_page():
    return _page("login.html")


@router.get("/stock", response_class=HTMLResponse, include_in_schema=False)
async def cabinet_list_page():
    return _page("cabinets.html")


@router.get("/stock/cabinet/{cabinet_id}", response_class=HTMLResponse, include_in_schema=False)
async def cabinet_page(cabinet_id: int):
    # The page reads the cabinet id from its own URL
    return _page("cabinet.html")
