#!/usr/bin/env python3
"""
Path Parameter Extractor
=========================
Extracts path parameters from route templates.

Supports every dialect the extractors emit:
- FastAPI / ASP.NET / Spring: /users/{user_id}, /users/{user_id:int}, {id?}
- Flask / Django: /users/<user_id>, /users/<int:user_id>
- Django regex: (?P<user_id>[0-9]+)
- Express / Rails / Next.js: /users/:user_id, :slug*, :id?
"""

import re
import logging
from typing import List, Optional, Tuple

from extractors.models import Parameter

logger = logging.getLogger("endpoint_scanner.contract.path_params")


class PathParameterExtractor:
    """
    Extract path parameters from route templates using regex.

    Route templates follow well-defined conventions, so these are always
    reported as required path parameters.
    """

    # Type mappings for different frameworks
    TYPE_MAPPINGS = {
        # Python types
        'int': 'integer',
        'integer': 'integer',
        'float': 'number',
        'str': 'string',
        'string': 'string',
        'bool': 'boolean',
        'boolean': 'boolean',
        'uuid': 'string',
        'path': 'string',
        'slug': 'string',

        # ASP.NET / C# types
        'guid': 'string',
        'long': 'integer',
        'decimal': 'number',
        'double': 'number',
        'datetime': 'string',
        'alpha': 'string',

        # JavaScript / TypeScript types
        'number': 'number',
    }

    _BRACED = re.compile(r'\{\*?(\w+)(?::(\w+))?[^}]*\}')
    _ANGLED = re.compile(r'<(?:(\w+):)?(\w+)>')
    _DJANGO_GROUP = re.compile(r'\(\?P<(\w+)>[^)]*\)')
    _COLON = re.compile(r'(?:^|/):(\w+)')

    @staticmethod
    def extract(route: str) -> List[Parameter]:
        """
        Extract all parameters from a route template.

        Args:
            route: Route template (e.g., "/users/{user_id:int}")

        Returns:
            Parameters in template order, deduplicated by name

        Example:
            >>> PathParameterExtractor.extract("/users/{user_id:int}/posts/:post")
            [Parameter(name='user_id', type='integer', ...), Parameter(name='post', ...)]
        """
        found: List[Tuple[int, str, Optional[str]]] = []

        # Django regex groups first; their bodies may contain braces and brackets
        for match in PathParameterExtractor._DJANGO_GROUP.finditer(route):
            found.append((match.start(), match.group(1), None))
        stripped = PathParameterExtractor._DJANGO_GROUP.sub(lambda m: "_" * len(m.group(0)), route)

        # FastAPI-style: {param:type} or {param}
        for match in PathParameterExtractor._BRACED.finditer(stripped):
            found.append((match.start(), match.group(1), match.group(2)))

        # Flask-style: <type:param> or <param>
        for match in PathParameterExtractor._ANGLED.finditer(stripped):
            found.append((match.start(), match.group(2), match.group(1)))

        # Express-style: :param (outside braces so {id:int} is not read twice)
        plain = PathParameterExtractor._BRACED.sub(lambda m: "_" * len(m.group(0)), stripped)
        for match in PathParameterExtractor._COLON.finditer(plain):
            found.append((match.start(), match.group(1), None))

        seen = set()
        parameters = []
        for _, name, type_hint in sorted(found, key=lambda f: f[0]):
            if name in seen:
                continue
            seen.add(name)
            param_type = PathParameterExtractor.infer_type(type_hint or '', name)
            parameters.append(Parameter(
                name=name,
                type=param_type,
                required=True,
                location="path",
                description=PathParameterExtractor._generate_description(name, param_type),
            ))

        if parameters:
            logger.debug(f"Extracted {len(parameters)} path parameters from route: {route}")

        return parameters

    @staticmethod
    def infer_type(type_hint: str, param_name: str = "") -> str:
        """
        Infer a JSON-schema type from a route type hint, falling back to the name.

        Args:
            type_hint: Type hint string (e.g., "int", "uuid", "str")
            param_name: Parameter name (for additional inference)
        """
        mapped = PathParameterExtractor.TYPE_MAPPINGS.get(type_hint.lower())
        if mapped:
            return mapped
        return PathParameterExtractor._infer_type_from_name(param_name)

    @staticmethod
    def _infer_type_from_name(param_name: str) -> str:
        """
        Infer type from parameter name patterns.

        Common patterns:
        - *_id, id → integer
        - *_count, count → integer
        - is_*, has_* → boolean
        - Everything else → string
        """
        name_lower = param_name.lower()

        if 'uuid' in name_lower or 'slug' in name_lower:
            return 'string'

        if name_lower == 'id' or name_lower.endswith('_id') or name_lower.endswith('id'):
            return 'integer'

        if name_lower.endswith('_count') or name_lower == 'count':
            return 'integer'

        if name_lower.startswith('is_') or name_lower.startswith('has_'):
            return 'boolean'

        return 'string'

    @staticmethod
    def _generate_description(param_name: str, param_type: str) -> str:
        """Basic description for a path parameter."""
        readable_name = param_name.replace('_', ' ').title()

        if param_name.lower().endswith('_id') or param_name.lower() == 'id':
            return f"{readable_name} identifier"
        if 'uuid' in param_name.lower():
            return f"UUID for {readable_name}"
        if param_type == 'boolean':
            return f"Flag indicating {readable_name.lower()}"
        return readable_name


def path_parameters(route: str) -> List[Parameter]:
    return PathParameterExtractor.extract(route)
