import json

import httpx
import pytest

from laneops.core.config import Settings
from laneops.core.context import AuthContext
from laneops.core.errors import (
    FlightValidationError,
    PersistenceError,
    RouteSuggestionError,
    TatCalculationError,
)
from laneops.schemas.lane import (
    DIRECT_DRIVE,
    AirportPairSuggestionRequest,
    Lane,
    LaneScope,
    LocationSuggestionRequest,
    ScopeKind,
)
from laneops.services.gateway import (
    FlightValidationClient,
    LanesApiClient,
    RouteSuggestionClient,
    TatEngineClient,
)
from laneops.services.legs import LaneEditor
from tests.conftest import make_lane, make_leg

BASE_URL = "http://lanes.test"
AUTH = AuthContext(token="secret-token")


class Recorder:
    """Mock transport handler that records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else httpx.Response(204)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)


def client_for(cls, recorder, auth=AUTH):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return cls(base_url=BASE_URL, auth=auth, http_client=http_client)


@pytest.mark.asyncio
async def test_flight_validation_request_and_result():
    recorder = Recorder(
        httpx.Response(
            200,
            json={
                "valid": False,
                "message": "Schedule mismatch",
                "mismatchedFields": ["departureTime"],
                "operatingDays": "Mon,Tue",
                "aircraftByDay": {"MONDAY": "77W"},
            },
        )
    )
    client = client_for(FlightValidationClient, recorder)
    leg = make_leg(5, 1, "DFW", "ORD", flight_operating_days="Mon")

    result = await client.validate_leg(leg)

    assert recorder.last.method == "POST"
    assert recorder.last.url.path == "/api/flights/validate-flight"
    assert recorder.last.headers["Authorization"] == "Bearer secret-token"
    body = recorder.body()
    assert body["flightNumber"] == "AA101"
    assert body["flightOperatingdays"] == "Mon"
    assert result.valid is False
    assert result.mismatched_fields == ["departureTime"]
    assert result.aircraft_by_day == {"MONDAY": "77W"}


@pytest.mark.asyncio
async def test_anonymous_context_sends_no_authorization_header():
    recorder = Recorder(httpx.Response(200, json={"valid": True}))
    client = client_for(FlightValidationClient, recorder, auth=AuthContext())

    await client.validate_leg(make_leg(1, 1, "DFW", "ORD"))

    assert "Authorization" not in recorder.last.headers


@pytest.mark.asyncio
async def test_error_status_raises_typed_error():
    recorder = Recorder(httpx.Response(503, text="validator down"))
    client = client_for(FlightValidationClient, recorder)

    with pytest.raises(FlightValidationError) as exc_info:
        await client.validate_leg(make_leg(1, 1, "DFW", "ORD"))

    assert exc_info.value.status_code == 503
    assert "validator down" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    recorder = Recorder(httpx.ConnectError("connection refused"))
    client = client_for(FlightValidationClient, recorder)

    with pytest.raises(FlightValidationError, match="unreachable"):
        await client.validate_leg(make_leg(1, 1, "DFW", "ORD"))


@pytest.mark.asyncio
async def test_tat_engine_returns_text_verbatim():
    recorder = Recorder(httpx.Response(200, text=" 1 day 2 hrs \n"))
    client = client_for(TatEngineClient, recorder)
    lane = make_lane()

    tat = await client.calculate_tat(lane)

    assert tat == "1 day 2 hrs"
    assert recorder.last.url.path == "/lanes/calculateTAT"
    body = recorder.body()
    assert body["lane"]["id"] == 1
    assert "legs" not in body["lane"]
    assert [leg["id"] for leg in body["flights"]] == ["1-1", "1-2"]


@pytest.mark.asyncio
async def test_tat_engine_error():
    client = client_for(TatEngineClient, Recorder(httpx.Response(500, text="boom")))
    with pytest.raises(TatCalculationError):
        await client.calculate_tat(make_lane())


@pytest.mark.asyncio
async def test_route_suggestions_parse_patterns():
    recorder = Recorder(
        httpx.Response(
            200,
            json=[
                [
                    {"sequence": 1, "originStation": "DFW", "destinationStation": "ATL"},
                    {"sequence": 2, "originStation": "ATL", "destinationStation": "JFK"},
                ],
                {"legs": [{"sequence": 1, "originStation": "DFW", "destinationStation": "JFK"}]},
            ],
        )
    )
    client = client_for(RouteSuggestionClient, recorder)
    request = AirportPairSuggestionRequest(
        item_number="I-1", origin_airport="DFW", destination_airport="JFK", collection_time="08:00"
    )

    patterns = await client.suggest_by_airport_pair(request)

    assert recorder.last.url.path == "/lanes/suggestRoute"
    assert recorder.body() == {
        "itemNumber": "I-1",
        "originAirport": "DFW",
        "destinationAirport": "JFK",
        "collectionTime": "08:00",
    }
    assert [len(p.legs) for p in patterns] == [2, 1]


@pytest.mark.asyncio
async def test_route_suggestions_by_location_endpoint():
    recorder = Recorder(httpx.Response(200, json=[]))
    client = client_for(RouteSuggestionClient, recorder)

    patterns = await client.suggest_by_location(LocationSuggestionRequest(origin_city="Dallas"))

    assert patterns == []
    assert recorder.last.url.path == "/lanes/suggestRouteByLocation"
    assert recorder.body()["originCity"] == "Dallas"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "scope, path",
    [
        (LaneScope(kind=ScopeKind.ACCOUNT, id="7"), "/lanes/account/7"),
        (LaneScope(kind=ScopeKind.LANE_MAPPING, id="3"), "/lanes/laneMapping/3"),
        (LaneScope(kind=ScopeKind.ALL), "/lanes"),
    ],
)
async def test_list_lanes_paths(scope, path):
    recorder = Recorder(httpx.Response(200, json=[{"id": 1, "hasBeenUpdated": True, "valid": True}]))
    client = client_for(LanesApiClient, recorder)

    lanes = await client.list_lanes(scope)

    assert recorder.last.url.path == path
    assert lanes[0].has_been_updated is False
    assert lanes[0].status.value == "VALID"


@pytest.mark.asyncio
async def test_save_existing_lane_sends_lane_and_flights():
    recorder = Recorder(httpx.Response(200, json={"id": 1}))
    client = client_for(LanesApiClient, recorder)
    lane = make_lane()
    LaneEditor().add_leg(lane)

    await client.save_lane(lane)

    assert recorder.last.method == "PUT"
    assert recorder.last.url.path == "/lanes/updateLane/1"
    body = recorder.body()
    assert set(body) == {"lane", "flights"}
    assert "hasBeenUpdated" not in body["lane"]
    assert [leg["id"] for leg in body["flights"]] == ["1-1", "1-2", None]


@pytest.mark.asyncio
async def test_save_direct_drive_lane_uses_direct_drive_endpoint():
    recorder = Recorder(httpx.Response(204))
    client = client_for(LanesApiClient, recorder)
    lane = make_lane()
    LaneEditor().select_service_level(lane, DIRECT_DRIVE)

    assert await client.save_lane(lane) is None

    assert recorder.last.url.path == "/lanes/updateLane/1/directdrive"
    assert set(recorder.body()) == {"lane"}


@pytest.mark.asyncio
async def test_save_new_lane_returns_canonical_id():
    recorder = Recorder(httpx.Response(201, json={"id": 77}))
    client = client_for(LanesApiClient, recorder)
    lane = Lane(id="tmp-1", item_number="NEW")

    assert await client.save_lane(lane) == 77
    assert recorder.last.method == "POST"
    assert recorder.last.url.path == "/lanes"
    assert recorder.body()["lane"]["id"] is None


@pytest.mark.asyncio
async def test_save_many_and_delete_paths():
    recorder = Recorder(httpx.Response(200, json={"updated": 1}), httpx.Response(200, json={"updated": 1}))
    client = client_for(LanesApiClient, recorder)
    lane = make_lane()

    await client.save_lanes(LaneScope(kind=ScopeKind.ACCOUNT, id="7"), [lane])
    assert recorder.last.url.path == "/lanes/account/7/updateLanes"
    assert recorder.body()[0]["legs"][0]["id"] == "1-1"

    await client.save_lanes(LaneScope(kind=ScopeKind.ALL), [lane])
    assert recorder.last.url.path == "/lanes/updateLanes"

    await client.delete_lane(1)
    assert recorder.last.method == "DELETE"
    assert recorder.last.url.path == "/lanes/delete/1"


@pytest.mark.asyncio
async def test_store_error_raises_persistence_error():
    client = client_for(LanesApiClient, Recorder(httpx.Response(404, text="")))
    with pytest.raises(PersistenceError) as exc_info:
        await client.get_lane(5)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(Recorder()))
    client = LanesApiClient(base_url=BASE_URL, http_client=http_client)

    await client.close()

    assert not http_client.is_closed
    await http_client.aclose()


def test_flight_validator_base_url_defaults_to_lanes_api():
    settings = Settings(lanes_api_base_url="http://lanes.internal/")
    assert FlightValidationClient.from_settings(settings).base_url == "http://lanes.internal"

    settings = Settings(lanes_api_base_url="http://lanes.internal", flight_validation_base_url="http://flights.internal")
    assert FlightValidationClient.from_settings(settings, AUTH).base_url == "http://flights.internal"
    assert LanesApiClient.from_settings(settings, AUTH).base_url == "http://lanes.internal"


@pytest.mark.asyncio
async def test_malformed_route_pattern_raises_suggestion_error():
    recorder = Recorder(httpx.Response(200, json=[[{"sequence": "first", "originStation": "DFW"}]]))
    client = client_for(RouteSuggestionClient, recorder)

    with pytest.raises(RouteSuggestionError) as exc_info:
        await client.suggest_by_location(LocationSuggestionRequest(origin_city="Dallas"))
    assert "Malformed route pattern" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unknown_leg_status_from_store_raises_persistence_error():
    payload = [{"id": 1, "flights": [{"id": 10, "sequence": 1, "status": "MAYBE"}]}]
    client = client_for(LanesApiClient, Recorder(httpx.Response(200, json=payload)))

    with pytest.raises(PersistenceError) as exc_info:
        await client.list_lanes(LaneScope(kind=ScopeKind.ACCOUNT, id="7"))
    assert "Malformed lane payload" in str(exc_info.value)


@pytest.mark.asyncio
async def test_malformed_validation_result_raises_validation_error():
    client = client_for(FlightValidationClient, Recorder(httpx.Response(200, json={"valid": "perhaps"})))

    with pytest.raises(FlightValidationError):
        await client.validate_leg(make_leg(1, 1, "DFW", "ORD"))
