"""
Validation rule recognizers.

Each library contributes ValidationRule fragments; the first library seen
names the Validation record.
"""
import re
from typing import List, Optional

from extractors.models import Validation, ValidationRule

WINDOW = 2000

_ZOD = re.compile(r'(\w+Schema)\.(?:safeParse|parse)|z\.object\s*\(\s*\{')
_ZOD_FIELD = re.compile(r'(\w+)\s*:\s*z\.(\w+)\(\)')
_YUP = re.compile(r'yup\.object\s*\(\s*\{')
_YUP_FIELD = re.compile(r'(\w+)\s*:\s*yup\.(\w+)')
_EXPRESS_VALIDATOR = re.compile(r'\b(?:body|query|param)\s*\(\s*[\'"](\w+)[\'"]\s*\)\s*\.(\w+)')
_CLASS_VALIDATOR = re.compile(
    r'@(IsString|IsNumber|IsEmail|IsOptional|MinLength|MaxLength|Min|Max)\s*\(\s*([^)]*)\)\s*(?:readonly\s+)?(\w+)?'
)
_LARAVEL = re.compile(r'\$request->validate\s*\(\s*\[([^\]]+)\]')
_LARAVEL_RULE = re.compile(r'[\'"](\w+)[\'"]\s*=>\s*[\'"]([^\'"]+)[\'"]')
_BEAN = re.compile(r'@(NotNull|NotEmpty|NotBlank|Size|Min|Max|Email|Pattern)\b\s*(?:\([^)]*\))?\s*(?:\w+\s+)?(\w+)?')
_PYDANTIC_FIELD = re.compile(r'(?:(\w+)\s*:\s*[\w\[\], ]+=\s*)?Field\s*\(\s*([^)]+)\)')


def extract_validation(window: str) -> Optional[Validation]:
    """Validation rules in window; None when no library is recognized."""
    rules: List[ValidationRule] = []
    libraries: List[str] = []
    schema: Optional[str] = None

    zod = _ZOD.search(window)
    if zod:
        libraries.append("zod")
        schema = zod.group(1) or "ZodSchema"
        for m in _ZOD_FIELD.finditer(window):
            rules.append(ValidationRule(field=m.group(1), rule=f"z.{m.group(2)}()"))

    if _YUP.search(window):
        libraries.append("yup")
        schema = schema or "YupSchema"
        for m in _YUP_FIELD.finditer(window):
            rules.append(ValidationRule(field=m.group(1), rule=f"yup.{m.group(2)}"))

    for m in _EXPRESS_VALIDATOR.finditer(window):
        if "express-validator" not in libraries:
            libraries.append("express-validator")
        rules.append(ValidationRule(field=m.group(1), rule=m.group(2)))

    for m in _CLASS_VALIDATOR.finditer(window):
        if "class-validator" not in libraries:
            libraries.append("class-validator")
        rules.append(ValidationRule(field=m.group(3) or "unknown", rule=f"@{m.group(1)}({m.group(2).strip()})"))

    laravel = _LARAVEL.search(window)
    if laravel:
        libraries.append("laravel")
        for m in _LARAVEL_RULE.finditer(laravel.group(1)):
            rules.append(ValidationRule(field=m.group(1), rule=m.group(2)))

    for m in _BEAN.finditer(window):
        if "bean-validation" not in libraries:
            libraries.append("bean-validation")
        rules.append(ValidationRule(field=m.group(2) or "unknown", rule=f"@{m.group(1)}"))

    for m in _PYDANTIC_FIELD.finditer(window):
        constraints = m.group(2)
        if "min_length" in constraints or "max_length" in constraints:
            if "pydantic" not in libraries:
                libraries.append("pydantic")
            rules.append(ValidationRule(field=m.group(1) or "unknown", rule=f"Field({constraints.strip()})"))

    if not rules and not schema:
        return None
    return Validation(library=libraries[0] if libraries else "unknown", rules=rules, schema=schema)
