"""Middleware, guard and interceptor names attached to a route."""
import re
from typing import List, Optional

from extractors.base import annotation_start, call_arguments

BACKWARD = 500
FORWARD = 200

_ROUTE_CALL = re.compile(
    r'\w+\.(?:get|post|put|patch|delete|options|head|all|del|opts)\s*\(', re.IGNORECASE
)
_QUOTED = re.compile(r'^([\'"`]).*\1$', re.DOTALL)
_MIDDLEWARE_ARG = re.compile(r'^[A-Za-z_$][\w.$]*(?:\([^()]*\))?$')

_NEST = re.compile(r'@Use(Guards|Interceptors|Pipes)\s*\(\s*([^)]+)\s*\)')
_DEPENDS = re.compile(r'Depends\s*\(\s*(\w+)\s*\)')
_SPRING_SECURITY = re.compile(r'@(PreAuthorize|Secured|RolesAllowed)\s*\(\s*([^)]+)\s*\)')
_LARAVEL = re.compile(r'->middleware\s*\(\s*\[?\s*[\'"]([^\'"]+)[\'"]')


def route_call_middleware(content: str, offset: int) -> List[str]:
    """
    Arguments between the path and the final handler of a route call.

    router.post('/orders', auth, validate, createOrder) -> [auth, validate]
    """
    if not _ROUTE_CALL.match(content, offset):
        return []
    args = call_arguments(content, offset)
    if len(args) < 3 or not _QUOTED.match(args[0]):
        return []
    return [arg for arg in args[1:-1] if _MIDDLEWARE_ARG.match(arg)]


def extract_middleware(content: str, offset: int, lower: int = 0, upper: Optional[int] = None) -> List[str]:
    """Ordered, deduplicated middleware names for the route declared at offset."""
    middleware = route_call_middleware(content, offset)

    end = offset + FORWARD if upper is None else min(offset + FORWARD, upper)
    window = content[annotation_start(content, offset, lower, BACKWARD):end]
    for m in _NEST.finditer(window):
        middleware.append(f"{m.group(1)}: {m.group(2).strip()}")
    for m in _DEPENDS.finditer(window):
        middleware.append(f"Depends: {m.group(1)}")
    for m in _SPRING_SECURITY.finditer(window):
        middleware.append(f"{m.group(1)}: {m.group(2).strip()}")
    for m in _LARAVEL.finditer(window):
        middleware.append(m.group(1))

    return list(dict.fromkeys(middleware))
