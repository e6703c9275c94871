"""
Path template normalization.

Every parameter dialect the extractors emit is rewritten to the braced
{name} form:

    :id, :id?, :id*, *glob        Express / Rails / Next.js
    {id}, {id:int}, {id?}, {*id}  FastAPI / ASP.NET / Spring
    <id>, <int:id>, <path:id>     Flask / Django
    (?P<id>[0-9]+)                Django re_path
    [id], [...slug]               file-system routers
"""
import re
from typing import List

_DJANGO_GROUP = re.compile(r'\(\?P<(\w+)>(?:[^()]|\([^()]*\))*\)')
_ANGLED = re.compile(r'<(?:\w+:)?(\w+)>')
_BRACED = re.compile(r'\{\*{0,2}(\w+)[^}]*\}')
_BRACKETED = re.compile(r'\[\[?(?:\.\.\.)?(\w+)\]\]?')
_COLON = re.compile(r'(?<=/):(\w+)(?:\([^)]*\))?[?*+]?')
_GLOB = re.compile(r'(?<=/)\*(\w+)')
_RAILS_FORMAT = re.compile(r'\(\.:?format\)')
_PLACEHOLDER = re.compile(r'\{[^}]*\}')
_PARAM_NAME = re.compile(r'\{(\w+)\}')


def normalize_path(raw: str) -> str:
    path = (raw or "").strip()
    path = _RAILS_FORMAT.sub("", path)
    path = re.sub(r'^(/?)\^+', r'\1', path).rstrip("$")
    path = _DJANGO_GROUP.sub(r'{\1}', path)
    path = _ANGLED.sub(r'{\1}', path)
    path = _BRACED.sub(r'{\1}', path)
    path = _BRACKETED.sub(r'{\1}', path)

    if not path.startswith("/"):
        path = "/" + path
    path = _COLON.sub(r'{\1}', path)
    path = _GLOB.sub(r'{\1}', path)

    path = path.split("?", 1)[0].split("#", 1)[0]
    path = re.sub(r'/{2,}', "/", path)
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def placeholder_template(path: str) -> str:
    """/users/{id}/posts/{post_id} -> /users/{}/posts/{}"""
    return _PLACEHOLDER.sub("{}", path)


def path_param_names(path: str) -> List[str]:
    return _PARAM_NAME.findall(path)


def is_param_segment(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")
