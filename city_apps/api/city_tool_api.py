# city_tool_api.py
# FastAPI wrapper for the solver tool functions and the city/state codec.
# Run with: uvicorn city_apps.api.city_tool_api:app --reload
import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from city_solver.city_tools import (
    RequestKind,
    allowed_heights_tool,
    candidates_to_lists,
    check_city,
    compute_city_difficulty,
    handle_request,
    solve_tool,
    time_limit,
)
from city_solver.config import load_config
from city_solver.serialize import (
    CodecError,
    city_uri,
    deserialize_city,
    deserialize_state,
    serialize_city,
    serialize_state,
)
from city_solver.solver_core import RIGHT, TOP, border_errors, empty_grid, field_errors, validate_city_grid
from types_city import City, Move

logger = logging.getLogger(__name__)

CONFIG = load_config()
app = FastAPI(title=CONFIG.api_title)


class HintsModel(BaseModel):
    border_hints: List[List[int]]


class GridModel(BaseModel):
    grid: List[List[int]]


class CityRequest(BaseModel):
    border_hints: List[List[int]]
    current: Optional[List[List[int]]] = None


class SolverRequestModel(BaseModel):
    kind: RequestKind
    border_hints: Optional[List[List[int]]] = None
    buildings: Optional[List[List[int]]] = None


class CityModel(BaseModel):
    width: int
    height: int
    border_hints: List[List[int]]


class CityIdModel(BaseModel):
    city_id: str


class StateModel(BaseModel):
    city: CityModel
    buildings: List[List[int]]
    marks: Optional[List[List[List[int]]]] = None


class StateDecodeModel(BaseModel):
    state: str
    width: int
    height: int


@app.exception_handler(CodecError)
async def codec_error_handler(request: Request, exc: CodecError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(TimeoutError)
async def timeout_handler(request: Request, exc: TimeoutError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def _empty_for(border_hints: List[List[int]]) -> List[List[int]]:
    if len(border_hints) != 4:
        raise ValueError(f"Expected 4 border hint lists, got {len(border_hints)}")
    return empty_grid(len(border_hints[TOP]), len(border_hints[RIGHT]))


def _current(req: CityRequest) -> List[List[int]]:
    current = req.current
    if current is None:
        current = _empty_for(req.border_hints)
    validate_city_grid(current, req.border_hints)
    return current


def _jsonable(result: Any) -> Any:
    if isinstance(result, Move):
        return result._asdict()
    if isinstance(result, list) and result and isinstance(result[0], list) and result[0] and isinstance(result[0][0], set):
        return candidates_to_lists(result)
    return result


@app.post("/hint")
def api_hint(req: CityRequest):
    move = handle_request(RequestKind.HINT, req.border_hints, _current(req), time_limit(CONFIG.solve_timeout))
    return {"move": _jsonable(move)}


@app.post("/difficulty")
def api_difficulty(payload: HintsModel):
    validate_city_grid(_empty_for(payload.border_hints), payload.border_hints)
    return {"difficulty": compute_city_difficulty(payload.border_hints, time_limit(CONFIG.solve_timeout))}


@app.post("/allowed_heights")
def api_allowed(req: CityRequest):
    return allowed_heights_tool(_current(req), req.border_hints)


@app.post("/field_errors")
def api_field_errors(payload: GridModel):
    validate_city_grid(payload.grid)
    return {"errors": field_errors(payload.grid)}


@app.post("/border_errors")
def api_border_errors(req: CityRequest):
    return {"errors": border_errors(_current(req), req.border_hints)}


@app.post("/check")
def api_check(req: CityRequest):
    return check_city(req.border_hints, _current(req))


@app.post("/solve")
def api_solve(req: CityRequest):
    return solve_tool(req.border_hints, _current(req))


@app.post("/request")
def api_request(req: SolverRequestModel):
    logger.info("Solver request '%s'", req.kind.value)
    result = handle_request(req.kind, req.border_hints, req.buildings, time_limit(CONFIG.solve_timeout))
    return {"kind": req.kind.value, "result": _jsonable(result)}


@app.post("/cities/encode")
def api_encode_city(payload: CityModel):
    city_id = serialize_city(City(payload.width, payload.height, payload.border_hints))
    return {"city_id": city_id, "uri": city_uri(city_id, CONFIG.share_base_url)}


@app.post("/cities/decode")
def api_decode_city(payload: CityIdModel):
    city = deserialize_city(payload.city_id)
    return {"width": city.width, "height": city.height, "border_hints": city.border_hints}


@app.post("/states/encode")
def api_encode_state(payload: StateModel):
    city = City(payload.city.width, payload.city.height, payload.city.border_hints)
    marks = [[set(cell) for cell in row] for row in payload.marks] if payload.marks else None
    return {"state": serialize_state(city, payload.buildings, marks)}


@app.post("/states/decode")
def api_decode_state(payload: StateDecodeModel):
    state = deserialize_state(payload.state, payload.width, payload.height)
    return {"buildings": state.buildings, "marks": candidates_to_lists(state.marks)}
