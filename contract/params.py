"""
Per-language parameter, request body and response recognizers.

Each recognizer reads the forward context window of one route declaration
and returns a Contract. Path parameters found here are reconciled with the
route template by the miner.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from extractors.base import Language, split_arguments
from extractors.models import Parameter, RequestBody, Response

from .status_codes import StatusCodeAnalyzer, describe

JSON = "application/json"
MULTIPART = "multipart/form-data"
FORM = "application/x-www-form-urlencoded"

WINDOWS = {
    "typescript": 1000,
    "python": 1000,
    "ruby": 1000,
    "java": 1500,
    "legacy_java": 2000,
    "go": 1500,
    "php": 1500,
    "rust": 1500,
    "csharp": 1500,
    "kotlin": 1500,
    "generic": 1000,
}

LEGACY_JAVA_FRAMEWORKS = {"jaxrs", "quarkus", "servlet", "struts"}

_SCALAR_TYPES = {
    # Python / TypeScript
    "int": "integer",
    "float": "number",
    "str": "string",
    "bool": "boolean",
    "number": "number",
    "string": "string",
    "boolean": "boolean",
    "list": "array",
    "dict": "object",
    # Java / Kotlin / C#
    "integer": "integer",
    "long": "integer",
    "short": "integer",
    "double": "number",
    "bigdecimal": "number",
    "decimal": "number",
    "guid": "string",
    "uuid": "string",
    "datetime": "string",
    "localdate": "string",
    "localdatetime": "string",
    "date": "string",
    "instant": "string",
    "offsetdatetime": "string",
    "char": "string",
    # Rust / Go
    "i32": "integer",
    "i64": "integer",
    "u32": "integer",
    "u64": "integer",
    "usize": "integer",
    "f32": "number",
    "f64": "number",
    "int64": "integer",
    "float64": "number",
}

_FILE_TYPES = {"uploadfile", "multipartfile", "iformfile", "file", "part"}


def json_type(type_name: Optional[str]) -> str:
    """Map a source-language type annotation to a JSON-schema type name."""
    if not type_name:
        return "string"
    name = type_name.strip().rstrip("?")
    optional = re.match(r'(?:Optional|Option|Nullable)\s*[\[<](.+)[\]>]$', name)
    if optional:
        name = optional.group(1)
    if re.match(r'(?:List|list|Set|Sequence|Vec|IEnumerable|Collection)\s*[\[<]', name) or name.endswith("[]"):
        return "array"
    if re.match(r'(?:Dict|dict|Map|HashMap)\s*[\[<]', name):
        return "object"
    declared = name.split(".")[-1]
    base = declared.lower()
    if base in _FILE_TYPES:
        return "file"
    return _SCALAR_TYPES.get(base, "string" if declared[:1].islower() else "object")


@dataclass
class Contract:
    """Parameters, body and responses recovered from one context window."""
    parameters: List[Parameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: List[Response] = field(default_factory=list)

    def param(self, name: str, location: str, type_: str = "string", required: bool = False,
              description: Optional[str] = None) -> None:
        for existing in self.parameters:
            if existing.name == name and existing.location == location:
                return
        self.parameters.append(Parameter(
            name=name, type=type_, required=required, location=location, description=description,
        ))

    def body(self, content_type: str = JSON, schema_ref: Optional[str] = None,
             required: bool = True, example=None) -> None:
        # multipart wins over JSON, a named schema wins over an anonymous one
        current = self.request_body
        if current is None:
            self.request_body = RequestBody(content_type=content_type, schema_ref=schema_ref,
                                            required=required, example=example)
            return
        if content_type == MULTIPART:
            current.content_type = MULTIPART
        if schema_ref and not current.schema_ref:
            current.schema_ref = schema_ref
        if example is not None and current.example is None:
            current.example = example

    def respond(self, status_code: int, content_type: Optional[str] = None,
                schema_ref: Optional[str] = None, description: Optional[str] = None) -> None:
        for existing in self.responses:
            if existing.status_code == status_code:
                if schema_ref and not existing.schema_ref:
                    existing.schema_ref = schema_ref
                return
        self.responses.append(Response(
            status_code=status_code,
            content_type=content_type,
            schema_ref=schema_ref,
            description=description or describe(status_code),
        ))

    def respond_codes(self, window: str) -> None:
        for code in sorted(StatusCodeAnalyzer.extract_from_code(window)):
            self.respond(code, JSON if 200 <= code < 300 else None)

    def params_in_body(self) -> List[Parameter]:
        return [p for p in self.parameters if p.location == "body"]


def _respond_if(contract: Contract, window: str, markers: Sequence[str], code: int = 200,
                content_type: Optional[str] = JSON) -> None:
    if any(marker in window for marker in markers):
        contract.respond(code, content_type)


# ===================== TYPESCRIPT / JAVASCRIPT =====================

_TS_JSON_ASSIGN = re.compile(
    r'(?:const|let|var)\s+(\w+)(?:\s*:\s*(\w+))?\s*=\s*(?:await\s+)?(?:request|req|c\.req|ctx\.request)\.json\(\)'
    r'(?:\s+as\s+(\w+))?'
)
_TS_BODY_MARKERS = ("request.json()", "req.json()", "req.body", "request.body", "c.req.json()", "ctx.request.body")
_TS_FORM_MARKERS = ("formData()", "req.files", "req.file", "c.req.parseBody()")
_TS_SEARCH_PARAM = re.compile(r'searchParams\.get\(\s*[\'"`]([\w-]+)[\'"`]\s*\)')
_TS_QUERY_PROP = re.compile(r'\b(?:req|request|ctx)\.query\.(\w+)')
_TS_QUERY_CALL = re.compile(r'\bc\.req\.query\(\s*[\'"`](\w+)[\'"`]\s*\)')
_TS_QUERY_DESTRUCTURE = re.compile(r'(?:const|let)\s*\{([^}]*)\}\s*=\s*(?:req|request|ctx)\.query\b')
_TS_HEADER = re.compile(r'headers\.get\(\s*[\'"`]([\w-]+)[\'"`]\s*\)|req\.headers\[\s*[\'"`]([\w-]+)[\'"`]\s*\]')
_TS_NEST_PARAM = re.compile(r'@(Query|Param|Body|Headers)\(\s*(?:[\'"`]([\w-]+)[\'"`])?\s*\)\s*(\w+)?\s*(?::\s*(\w+))?')
_TS_RESPONSE_MARKERS = ("NextResponse.json", "res.json", "Response.json", "c.json(", "res.send(", "reply.send(")


def _destructured_names(text: str) -> List[str]:
    names = []
    for part in text.split(","):
        name = part.split(":")[0].split("=")[0].strip()
        if re.match(r'^\w+$', name):
            names.append(name)
    return names


def recognize_typescript(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    assigned = _TS_JSON_ASSIGN.search(window)
    if assigned or any(marker in window for marker in _TS_BODY_MARKERS):
        schema = (assigned.group(2) or assigned.group(3)) if assigned else None
        contract.body(JSON, schema)
    if any(marker in window for marker in _TS_FORM_MARKERS):
        contract.body(MULTIPART)

    for m in _TS_SEARCH_PARAM.finditer(window):
        contract.param(m.group(1), "query")
    for m in _TS_QUERY_PROP.finditer(window):
        contract.param(m.group(1), "query")
    for m in _TS_QUERY_CALL.finditer(window):
        contract.param(m.group(1), "query")
    for m in _TS_QUERY_DESTRUCTURE.finditer(window):
        for name in _destructured_names(m.group(1)):
            contract.param(name, "query")
    for m in _TS_HEADER.finditer(window):
        contract.param(m.group(1) or m.group(2), "header")

    # NestJS parameter decorators
    for m in _TS_NEST_PARAM.finditer(window):
        kind, key, var, type_name = m.groups()
        if kind == "Body":
            contract.body(JSON, type_name if type_name and type_name[0].isupper() else None)
        elif kind == "Query" and (key or var):
            contract.param(key or var, "query", json_type(type_name))
        elif kind == "Param" and (key or var):
            contract.param(key or var, "path", json_type(type_name), required=True)
        elif kind == "Headers" and key:
            contract.param(key, "header")

    _respond_if(contract, window, _TS_RESPONSE_MARKERS)
    contract.respond_codes(window)
    return contract


# ===================== PYTHON =====================

_PY_DEF = re.compile(r'\bdef\s+\w+\s*\(')
_PY_ARG = re.compile(r'^\*{0,2}(\w+)\s*(?::\s*(.+?))?\s*(?:=\s*(.+))?$', re.DOTALL)
_PY_SKIP = {"request", "response", "db", "session", "self", "cls", "background_tasks", "req", "res"}
_PY_BODY_TYPE = re.compile(r'^\w+(?:Model|Schema|Input|Create|Update|Request|In|DTO|Dto|Payload)$')
_PY_ARGS_GET = re.compile(r'request\.(args|GET|query_params)\.get\(\s*[\'"](\w+)[\'"]')
_PY_ARGS_INDEX = re.compile(r'request\.(args|GET|query_params)\[\s*[\'"](\w+)[\'"]\s*\]')
_PY_FORM = re.compile(r'request\.(?:form|POST)(?:\.get\(\s*|\[\s*)[\'"](\w+)[\'"]')
_PY_HEADER = re.compile(r'request\.headers\.get\(\s*[\'"]([\w-]+)[\'"]')
_PY_JSON_MARKERS = ("request.get_json(", "request.json", "request.data", "json.loads(request.body", "await request.json()")
_PY_RESPONSE_MARKERS = ("JSONResponse", "return {", "jsonify(", "JsonResponse(", "Response(", "return [")


def _python_signature(window: str) -> List[str]:
    m = _PY_DEF.search(window)
    if not m:
        return []
    return split_arguments(window[m.end():])


def recognize_python(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    for arg in _python_signature(window):
        if arg.startswith("*") and not arg.strip("*"):
            continue
        m = _PY_ARG.match(arg.strip())
        if not m:
            continue
        name, annotation, default = m.group(1), (m.group(2) or "").strip(), (m.group(3) or "").strip()
        if name in _PY_SKIP or arg.startswith("*"):
            continue
        if "Depends(" in default or "Depends(" in annotation:
            continue

        annotation = annotation.split("|")[0].strip()
        base_type = re.sub(r'^(?:Optional|Annotated)\[([\w.]+).*\]$', r'\1', annotation).split(".")[-1]
        required = not default or "..." in default

        if name in path_names:
            contract.param(name, "path", json_type(base_type), required=True)
        elif "Header(" in default or "Header(" in annotation:
            contract.param(name, "header", json_type(base_type), required=required)
        elif base_type.lower() in _FILE_TYPES or "File(" in default:
            contract.body(MULTIPART)
            contract.param(name, "body", "file", required=required)
        elif "Form(" in default:
            contract.body(FORM)
            contract.param(name, "body", json_type(base_type), required=required)
        elif "Body(" in default:
            contract.body(JSON)
            contract.param(name, "body", json_type(base_type), required=required)
        elif _PY_BODY_TYPE.match(base_type):
            contract.body(JSON, base_type, required=default != "None")
        elif annotation:
            contract.param(name, "query", json_type(base_type), required=required)

    # Flask / Django / DRF request access
    for m in _PY_ARGS_GET.finditer(window):
        contract.param(m.group(2), "query")
    for m in _PY_ARGS_INDEX.finditer(window):
        contract.param(m.group(2), "query", required=True)
    for m in _PY_FORM.finditer(window):
        contract.body(FORM)
        contract.param(m.group(1), "body")
    for m in _PY_HEADER.finditer(window):
        contract.param(m.group(1), "header")
    if "request.files" in window or "request.FILES" in window:
        contract.body(MULTIPART)
    if any(marker in window for marker in _PY_JSON_MARKERS):
        contract.body(JSON)

    _respond_if(contract, window, _PY_RESPONSE_MARKERS)
    contract.respond_codes(window)
    return contract


# ===================== JAVA (SPRING / MICRONAUT) =====================

_JAVA_DECL = r'(?:@\w+(?:\([^)]*\))?\s+)*(?:final\s+)?([\w.]+(?:<[^>]*>)?(?:\[\])?)\s+(\w+)'
_KOTLIN_DECL = r'(?:@\w+(?:\([^)]*\))?\s+)*(?:val\s+)?(\w+)\s*:\s*([\w.]+(?:<[^>]*>)?\??)'
_ANNOTATION_NAME = re.compile(r'(?:value|name)\s*=\s*"([^"]*)"|^\s*"([^"]*)"')


def _annotated(annotation: str, window: str, kotlin: bool = False):
    """Yield (annotation args, type, name) for parameters carrying annotation."""
    prefix = rf'@{annotation}(?:\(([^)]*)\))?\s+'
    if kotlin:
        for m in re.finditer(prefix + _KOTLIN_DECL, window):
            yield m.group(1) or "", m.group(3), m.group(2)
    else:
        for m in re.finditer(prefix + _JAVA_DECL, window):
            yield m.group(1) or "", m.group(2), m.group(3)


def _annotation_name(args: str, fallback: str) -> str:
    m = _ANNOTATION_NAME.search(args)
    if m:
        return m.group(1) or m.group(2) or fallback
    return fallback


def _annotation_required(args: str) -> bool:
    return not re.search(r'required\s*=\s*false|defaultValue', args)


def recognize_java(window: str, method: str, path_names: Sequence[str] = (), framework: str = "",
                   kotlin: bool = False) -> Contract:
    contract = Contract()

    for args, type_name, name in _annotated("RequestParam", window, kotlin):
        if json_type(type_name) == "file":
            contract.body(MULTIPART)
            contract.param(_annotation_name(args, name), "body", "file", required=_annotation_required(args))
            continue
        contract.param(_annotation_name(args, name), "query", json_type(type_name), required=_annotation_required(args))
    for args, type_name, name in _annotated("PathVariable", window, kotlin):
        contract.param(_annotation_name(args, name), "path", json_type(type_name), required=True)
    for args, type_name, name in _annotated("RequestHeader", window, kotlin):
        contract.param(_annotation_name(args, name), "header", json_type(type_name), required=_annotation_required(args))
    for args, type_name, name in _annotated("RequestBody", window, kotlin):
        contract.body(JSON, re.sub(r'<.*', '', type_name).split(".")[-1] or None,
                      required=_annotation_required(args))
        break
    for args, type_name, name in _annotated("RequestPart", window, kotlin):
        contract.body(MULTIPART)
        contract.param(_annotation_name(args, name), "body", json_type(type_name), required=_annotation_required(args))

    # Micronaut
    for args, type_name, name in _annotated("QueryValue", window, kotlin):
        contract.param(_annotation_name(args, name), "query", json_type(type_name), required=False)
    for args, type_name, name in _annotated("Body", window, kotlin):
        contract.body(JSON, re.sub(r'<.*', '', type_name).split(".")[-1] or None)
        break

    entity = re.search(r'ResponseEntity<\s*([\w.]+)', window)
    _respond_if(contract, window, ("ResponseEntity", "@ResponseBody", "@RestController", "HttpResponse.ok"))
    if entity and contract.responses:
        contract.respond(200, JSON, entity.group(1))
    if "ResponseEntity.created(" in window or ".status(201)" in window:
        contract.respond(201, JSON)
    if "ResponseEntity.notFound()" in window or "NOT_FOUND" in window:
        contract.respond(404)
    if "ResponseEntity.noContent()" in window:
        contract.respond(204)
    if "ResponseEntity.badRequest()" in window:
        contract.respond(400)
    contract.respond_codes(window)
    return contract


# ===================== LEGACY JAVA (JAX-RS / SERVLET / STRUTS) =====================

_SERVLET_PARAM = re.compile(r'request\.getParameter\(\s*"(\w+)"\s*\)')
_SERVLET_PARAM_VALUES = re.compile(r'request\.getParameterValues\(\s*"(\w+)"\s*\)')
_SERVLET_ATTRIBUTE = re.compile(r'request\.getAttribute\(\s*"(\w+)"\s*\)')
_SERVLET_HEADER = re.compile(r'request\.getHeader\(\s*"([\w-]+)"\s*\)')
_SERVLET_PART = re.compile(r'request\.getPart\(\s*"(\w+)"\s*\)')
_STRUTS_FIELD = re.compile(r'private\s+(\w+(?:<[^>]*>)?)\s+(\w+)\s*;')
_JAXRS_PARAM = re.compile(r'@(QueryParam|PathParam|HeaderParam|FormParam)\(\s*"([\w-]+)"\s*\)\s*(?:@\w+(?:\([^)]*\))?\s+)*(?:final\s+)?([\w.<>\[\]]+)\s+(\w+)')
_JAXRS_BEAN = re.compile(r'@BeanParam\s+(?:final\s+)?(\w+)\s+(\w+)')


def recognize_legacy_java(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    for m in _SERVLET_PARAM.finditer(window):
        contract.param(m.group(1), "query")
    for m in _SERVLET_PARAM_VALUES.finditer(window):
        contract.param(m.group(1), "query", "array")
    for m in _SERVLET_ATTRIBUTE.finditer(window):
        contract.param(m.group(1), "body")
    for m in _SERVLET_HEADER.finditer(window):
        contract.param(m.group(1), "header")
    if "getInputStream()" in window or "getReader()" in window:
        contract.body(JSON)
    for m in _SERVLET_PART.finditer(window):
        contract.body(MULTIPART)
        contract.param(m.group(1), "body", "file", required=True)

    if framework == "struts":
        for m in _STRUTS_FIELD.finditer(window):
            contract.param(m.group(2), "body", json_type(m.group(1)))
        if "ActionForm" in window or "extends ActionSupport" in window:
            contract.body(FORM)

    locations = {"QueryParam": "query", "PathParam": "path", "HeaderParam": "header", "FormParam": "body"}
    for m in _JAXRS_PARAM.finditer(window):
        kind, key, type_name = m.group(1), m.group(2), m.group(3)
        location = locations[kind]
        contract.param(key, location, json_type(type_name), required=location == "path")
        if kind == "FormParam":
            contract.body(FORM)
    for m in _JAXRS_BEAN.finditer(window):
        contract.param(m.group(2), "query", "object", description=f"Bean parameter: {m.group(1)}")

    _respond_if(contract, window, ("setStatus", "PrintWriter", "Response.ok", "Response.status"))
    if "SC_CREATED" in window:
        contract.respond(201)
    if "SC_BAD_REQUEST" in window:
        contract.respond(400)
    if "SC_NOT_FOUND" in window:
        contract.respond(404)
    if "sendError(" in window:
        contract.respond(500)
    contract.respond_codes(window)
    return contract


# ===================== KTOR =====================

_KTOR_PATH = re.compile(r'call\.parameters\[\s*"(\w+)"\s*\]')
_KTOR_QUERY = re.compile(r'call\.request\.queryParameters\[\s*"(\w+)"\s*\]')
_KTOR_HEADER = re.compile(r'call\.request\.headers\[\s*"([\w-]+)"\s*\]')
_KTOR_RECEIVE = re.compile(r'call\.receive<\s*(\w+)\s*>')
_KTOR_STATUS = re.compile(r'HttpStatusCode\.(\w+)')
_KTOR_CODES = {"OK": 200, "Created": 201, "NoContent": 204, "BadRequest": 400, "Unauthorized": 401,
               "Forbidden": 403, "NotFound": 404, "Conflict": 409, "InternalServerError": 500}


def recognize_kotlin(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    if framework != "ktor":
        return recognize_java(window, method, path_names, framework, kotlin=True)
    contract = Contract()
    for m in _KTOR_PATH.finditer(window):
        contract.param(m.group(1), "path", required=True)
    for m in _KTOR_QUERY.finditer(window):
        contract.param(m.group(1), "query")
    for m in _KTOR_HEADER.finditer(window):
        contract.param(m.group(1), "header")
    receive = _KTOR_RECEIVE.search(window)
    if receive:
        contract.body(JSON, receive.group(1))
    if "receiveMultipart" in window:
        contract.body(MULTIPART)
    _respond_if(contract, window, ("call.respond(",))
    for m in _KTOR_STATUS.finditer(window):
        if m.group(1) in _KTOR_CODES:
            contract.respond(_KTOR_CODES[m.group(1)])
    return contract


# ===================== GO =====================

_GO_QUERY = re.compile(r'\bc\.(?:Query|QueryParam|DefaultQuery|GetQuery)\s*\(\s*"(\w+)"')
_GO_PATH = re.compile(r'\bc\.(?:Param|Params)\s*\(\s*"(\w+)"')
_GO_FORM = re.compile(r'\bc\.(?:PostForm|FormValue|DefaultPostForm)\s*\(\s*"(\w+)"')
_GO_STD_QUERY = re.compile(r'r\.URL\.Query\(\)\.Get\(\s*"(\w+)"\s*\)')
_GO_STD_PATH = re.compile(r'(?:mux\.Vars\(r\)\[\s*"(\w+)"\s*\]|chi\.URLParam\(\s*r\s*,\s*"(\w+)"\s*\)|r\.PathValue\(\s*"(\w+)"\s*\))')
_GO_HEADER = re.compile(r'(?:c\.GetHeader|r\.Header\.Get|c\.Request\(\)\.Header\.Get)\(\s*"([\w-]+)"\s*\)')
_GO_BIND = re.compile(r'(?:ShouldBindJSON|BindJSON|ShouldBind|Bind|BodyParser)\s*\(\s*&(\w+)\s*\)')
_GO_DECODE = re.compile(r'json\.NewDecoder\(\s*r\.Body\s*\)\.Decode\(\s*&(\w+)\s*\)')


def _go_var_type(window: str, var: str) -> Optional[str]:
    m = re.search(rf'\bvar\s+{re.escape(var)}\s+\*?([\w.]+)|\b{re.escape(var)}\s*:?=\s*&?([\w.]+)\s*\{{', window)
    if not m:
        return None
    return (m.group(1) or m.group(2)).split(".")[-1]


def recognize_go(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()
    for m in _GO_QUERY.finditer(window):
        contract.param(m.group(1), "query")
    for m in _GO_STD_QUERY.finditer(window):
        contract.param(m.group(1), "query")
    for m in _GO_PATH.finditer(window):
        contract.param(m.group(1), "path", required=True)
    for m in _GO_STD_PATH.finditer(window):
        contract.param(m.group(1) or m.group(2) or m.group(3), "path", required=True)
    for m in _GO_HEADER.finditer(window):
        contract.param(m.group(1), "header")
    for m in _GO_FORM.finditer(window):
        contract.body(FORM)
        contract.param(m.group(1), "body")

    bind = _GO_BIND.search(window) or _GO_DECODE.search(window)
    if bind:
        contract.body(JSON, _go_var_type(window, bind.group(1)))
    elif "c.Bind" in window or "BodyParser" in window:
        contract.body(JSON)
    if "FormFile(" in window or "MultipartForm(" in window:
        contract.body(MULTIPART)

    _respond_if(contract, window, ("c.JSON", "c.IndentedJSON", "json.NewEncoder(w)"))
    contract.respond_codes(window)
    return contract


# ===================== RUBY =====================

_RB_PARAM = re.compile(r'params\[:(\w+)\]')
_RB_FETCH = re.compile(r'params\.fetch\(\s*:(\w+)')
_RB_REQUIRE = re.compile(r'params\.require\(\s*:(\w+)\s*\)')
_RB_PERMIT = re.compile(r'\.permit\(\s*([^)]+)\s*\)')
_RB_GRAPE = re.compile(r'\b(requires|optional)\s+:(\w+)(?:\s*,\s*type:\s*(\w+))?')
_RB_STATUS = {
    "ok": 200, "created": 201, "no_content": 204, "bad_request": 400, "unauthorized": 401,
    "forbidden": 403, "not_found": 404, "unprocessable_entity": 422,
}


def recognize_ruby(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    for m in _RB_PARAM.finditer(window):
        contract.param(m.group(1), "query", required=True)
    for m in _RB_FETCH.finditer(window):
        contract.param(m.group(1), "query")

    required = _RB_REQUIRE.search(window)
    if required:
        permit = _RB_PERMIT.search(window, required.end())
        example = None
        if permit:
            example = {field: "..." for field in re.findall(r':(\w+)', permit.group(1))}
        contract.body(JSON, required.group(1), example=example)

    write = method in ("POST", "PUT", "PATCH")
    for m in _RB_GRAPE.finditer(window):
        location = "body" if write else "query"
        contract.param(m.group(2), location, json_type(m.group(3)), required=m.group(1) == "requires")
        if write:
            contract.body(JSON)

    _respond_if(contract, window, ("render json:", "render :json", "to_json"))
    for m in re.finditer(r'(?:status:|head)\s*:(\w+)', window):
        if m.group(1) in _RB_STATUS:
            contract.respond(_RB_STATUS[m.group(1)])
    contract.respond_codes(window)
    return contract


# ===================== PHP =====================

_PHP_QUERY = re.compile(r'\$request->(?:query|get)\s*\(\s*[\'"](\w+)[\'"]')
_PHP_SYMFONY_QUERY = re.compile(r'\$request->query->get\(\s*[\'"](\w+)[\'"]')
_PHP_INPUT = re.compile(r'\$request->(?:input|post)\s*\(\s*[\'"](\w+)[\'"]')
_PHP_SYMFONY_BODY = re.compile(r'\$request->request->get\(\s*[\'"](\w+)[\'"]')
_PHP_HEADER = re.compile(r'\$request->(?:header\s*\(|headers->get\()\s*[\'"]([\w-]+)[\'"]')
_PHP_VALIDATE = re.compile(r'\$request->validate\s*\(\s*\[([^\]]+)\]')
_PHP_VALIDATE_FIELD = re.compile(r'[\'"](\w+)[\'"]\s*=>\s*[\'"]?([^\'",\]]*)')
_PHP_JSON_STATUS = re.compile(r'->json\([^;]*?,\s*(\d{3})\s*\)')


def recognize_php(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    for m in _PHP_QUERY.finditer(window):
        contract.param(m.group(1), "query")
    for m in _PHP_SYMFONY_QUERY.finditer(window):
        contract.param(m.group(1), "query")
    for m in _PHP_INPUT.finditer(window):
        contract.param(m.group(1), "body")
    for m in _PHP_SYMFONY_BODY.finditer(window):
        contract.param(m.group(1), "body")
    for m in _PHP_HEADER.finditer(window):
        contract.param(m.group(1), "header")

    validate = _PHP_VALIDATE.search(window)
    if validate:
        contract.body(JSON)
        for m in _PHP_VALIDATE_FIELD.finditer(validate.group(1)):
            contract.param(m.group(1), "body", required="required" in m.group(2))
    if contract.params_in_body() and contract.request_body is None:
        contract.body(JSON, required=False)
    if "getContent()" in window or "getParsedBody()" in window:
        contract.body(JSON)
    if "->file(" in window or "hasFile(" in window or "getUploadedFiles()" in window:
        contract.body(MULTIPART)

    _respond_if(contract, window, ("response()->json", "return response(", "new JsonResponse(", "$this->json(",
                                   "withJson(", "json_encode("))
    for m in _PHP_JSON_STATUS.finditer(window):
        contract.respond(int(m.group(1)))
    for m in re.finditer(r'Response::HTTP_([A-Z_]+)', window):
        code = StatusCodeAnalyzer.NAMED_CONSTANTS.get(m.group(1))
        if code:
            contract.respond(code)
    contract.respond_codes(window)
    return contract


# ===================== RUST =====================

_RS_PATH_TUPLE = re.compile(r':\s*(?:web::)?Path<\s*\(([^)]*)\)\s*>')
_RS_PATH_SINGLE = re.compile(r':\s*(?:web::)?Path<\s*(\w+)\s*>')
_RS_QUERY = re.compile(r':\s*(?:web::)?Query<\s*(\w+)\s*>')
_RS_JSON = re.compile(r':\s*(?:web::)?Json<\s*(\w+)\s*>')
_RS_FORM = re.compile(r':\s*(?:web::)?Form<\s*(\w+)\s*>')
_RS_ROCKET_DATA = re.compile(r'data\s*=\s*"<(\w+)>"')
_RS_STATUS = re.compile(r'StatusCode::([A-Z_]+)')


def recognize_rust(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()

    path_types: List[str] = []
    tuple_match = _RS_PATH_TUPLE.search(window)
    if tuple_match:
        path_types = [t.strip() for t in tuple_match.group(1).split(",") if t.strip()]
    else:
        single = _RS_PATH_SINGLE.search(window)
        if single:
            path_types = [single.group(1)]
    for index, type_name in enumerate(path_types):
        name = path_names[index] if index < len(path_names) else f"param{index}"
        contract.param(name, "path", json_type(type_name), required=True)

    query = _RS_QUERY.search(window)
    if query:
        contract.param("query", "query", query.group(1))

    body = _RS_JSON.search(window) or _RS_ROCKET_DATA.search(window)
    if body:
        contract.body(JSON, body.group(1))
    form = _RS_FORM.search(window)
    if form:
        contract.body(FORM, form.group(1))
    if "Multipart" in window:
        contract.body(MULTIPART)

    _respond_if(contract, window, ("HttpResponse::Ok", "Json(", "json!("))
    _respond_if(contract, window, ("HttpResponse::Created", "Status::Created"), 201, None)
    _respond_if(contract, window, ("HttpResponse::NotFound", "Status::NotFound"), 404, None)
    for m in _RS_STATUS.finditer(window):
        code = StatusCodeAnalyzer.NAMED_CONSTANTS.get(m.group(1)) or (200 if m.group(1) == "OK" else None)
        if code:
            contract.respond(code)
    return contract


# ===================== C# / ASP.NET =====================

_CS_FROM = re.compile(
    r'\[From(Query|Route|Body|Header|Form)(?:\(\s*Name\s*=\s*"([\w-]+)"\s*\))?\]\s*([\w.<>?\[\]]+)\s+(\w+)'
)
_CS_RESULT = re.compile(
    r'\b(?:Results\.|TypedResults\.)?(Ok|Created|CreatedAtAction|CreatedAtRoute|Accepted|NoContent|BadRequest|'
    r'Unauthorized|Forbid|NotFound|Conflict|UnprocessableEntity)\s*(?:<[^>]*>)?\('
)
_CS_RESULT_CODES = {
    "Ok": 200, "Created": 201, "CreatedAtAction": 201, "CreatedAtRoute": 201, "Accepted": 202,
    "NoContent": 204, "BadRequest": 400, "Unauthorized": 401, "Forbid": 403, "NotFound": 404,
    "Conflict": 409, "UnprocessableEntity": 422,
}
_CS_PRODUCES = re.compile(r'ProducesResponseType\s*\((?:[^()]|\([^()]*\))*?(?:Status(\d{3})\w*|\b(\d{3})\b)')
_CS_ACTION_TYPE = re.compile(r'ActionResult<\s*([\w.]+)')


def recognize_csharp(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()
    locations = {"Query": "query", "Route": "path", "Header": "header", "Form": "body"}

    for m in _CS_FROM.finditer(window):
        kind, alias, type_name, name = m.groups()
        if kind == "Body":
            contract.body(JSON, type_name.rstrip("?"))
            continue
        if kind == "Form":
            contract.body(MULTIPART if json_type(type_name) == "file" else FORM)
        location = locations[kind]
        contract.param(alias or name, location, json_type(type_name),
                       required=location in ("path", "header") or not type_name.endswith("?"))
    if "IFormFile" in window:
        contract.body(MULTIPART)

    action_type = _CS_ACTION_TYPE.search(window)
    if "ActionResult" in window:
        contract.respond(200, JSON, action_type.group(1) if action_type else None)
    for m in _CS_RESULT.finditer(window):
        code = _CS_RESULT_CODES[m.group(1)]
        contract.respond(code, JSON if code < 300 and code != 204 else None)
    for m in _CS_PRODUCES.finditer(window):
        contract.respond(int(m.group(1) or m.group(2)))
    contract.respond_codes(window)
    return contract


# ===================== DISPATCH =====================

def recognize_generic(window: str, method: str, path_names: Sequence[str] = (), framework: str = "") -> Contract:
    contract = Contract()
    contract.respond_codes(window)
    return contract


class Recognizer(NamedTuple):
    name: str
    window: int
    func: Callable[..., Contract]


_BY_LANGUAGE: Dict[Language, Recognizer] = {
    Language.TYPESCRIPT: Recognizer("typescript", WINDOWS["typescript"], recognize_typescript),
    Language.JAVASCRIPT: Recognizer("typescript", WINDOWS["typescript"], recognize_typescript),
    Language.PYTHON: Recognizer("python", WINDOWS["python"], recognize_python),
    Language.JAVA: Recognizer("java", WINDOWS["java"], recognize_java),
    Language.KOTLIN: Recognizer("kotlin", WINDOWS["kotlin"], recognize_kotlin),
    Language.GO: Recognizer("go", WINDOWS["go"], recognize_go),
    Language.RUBY: Recognizer("ruby", WINDOWS["ruby"], recognize_ruby),
    Language.PHP: Recognizer("php", WINDOWS["php"], recognize_php),
    Language.RUST: Recognizer("rust", WINDOWS["rust"], recognize_rust),
    Language.DOTNET: Recognizer("csharp", WINDOWS["csharp"], recognize_csharp),
}

_LEGACY_JAVA = Recognizer("legacy_java", WINDOWS["legacy_java"], recognize_legacy_java)
_GENERIC = Recognizer("generic", WINDOWS["generic"], recognize_generic)


def recognizer_for(language: Language, framework: str) -> Recognizer:
    """Recognizer and forward window size for a (language, framework) pair."""
    if language == Language.JAVA and framework in LEGACY_JAVA_FRAMEWORKS:
        return _LEGACY_JAVA
    return _BY_LANGUAGE.get(language, _GENERIC)
