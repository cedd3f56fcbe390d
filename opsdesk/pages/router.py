"""Server-rendered page shells.

Protected sections render a shell that opens the guard socket and shows
its state; the edge filter has already turned away requests without a
session cookie.
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from opsdesk.access.edge import PROTECTED_ROUTES, get_required_role
from opsdesk.core.constants import JinjaPageTemplatesEnv, Routes
from opsdesk.core.deps import SettingsDep

router = APIRouter(include_in_schema=False)


def _render(template_name: str, **context) -> HTMLResponse:
    template = JinjaPageTemplatesEnv.get_template(template_name)
    return HTMLResponse(template.render(**context))


@router.get("/", response_class=HTMLResponse)
async def landing(settings: SettingsDep):
    return _render("landing.html", login_url=f"{settings.client_url}/auth/login")


async def section_shell(request: Request, settings: SettingsDep):
    path = request.url.path
    required_role = get_required_role(path)
    return _render(
        "shell.html",
        path=path,
        required_role=required_role.value if required_role else "",
        guard_url=f"{Routes.ACCESS.prefix}/ws",
        landing_route=settings.landing_route,
    )


for _section in sorted({route.split("/")[1] for route in PROTECTED_ROUTES}):
    router.add_api_route(
        f"/{_section}", section_shell, methods=["GET"], response_class=HTMLResponse
    )
    router.add_api_route(
        f"/{_section}/{{subpath:path}}",
        section_shell,
        methods=["GET"],
        response_class=HTMLResponse,
    )
