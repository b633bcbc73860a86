"""Home page and the static content pages"""

from fastapi import APIRouter, Request

from checkin.content import DEFAULT_LANGUAGE, load_content_page, t
from checkin.core.templates import render


router = APIRouter(tags=["Pages"])


def render_content_page(request: Request, page_name: str):
    lang = getattr(request.state, "lang", DEFAULT_LANGUAGE)
    page = load_content_page(page_name, lang)
    return render(request, "pages/content-page.html", {
        "pageTitle": page.page_title,
        "content": page.content,
    })


@router.get("/")
async def render_home(request: Request):
    lang = getattr(request.state, "lang", DEFAULT_LANGUAGE)
    return render(request, "pages/home.html", {"pageTitle": t(lang, "home.pageTitle")})


@router.get("/privacy-notice")
async def render_privacy_notice(request: Request):
    return render_content_page(request, "privacy")


@router.get("/accessibility")
async def render_accessibility(request: Request):
    return render_content_page(request, "accessibility")


@router.get("/guidance")
async def render_guidance(request: Request):
    return render_content_page(request, "guidance")


# Chrome asks for this on every page load with devtools open
@router.get("/.well-known/appspecific/com.chrome.devtools.json", include_in_schema=False)
async def chrome_devtools(request: Request):
    return render(request, "pages/not-found.html", status_code=404)
