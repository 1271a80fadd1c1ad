from hypothesis import given, settings
from hypothesis import strategies as st

from checkout_api.domain.enums import (
    ReservationStatus,
    RoutingOutcome,
    UnrecognizedReservationStatus,
    parse_reservation_status,
)
from checkout_api.domain.services import classify

_KNOWN_VALUES = {member.value for member in ReservationStatus}


@settings(max_examples=100, deadline=None)
@given(
    raw=st.text(max_size=40).filter(lambda text: text.strip() not in _KNOWN_VALUES),
    validated=st.one_of(st.none(), st.booleans()),
)
def test_property_1_unknown_stored_status_routes_to_not_found(
    raw: str,
    validated: bool | None,
) -> None:
    """
    Feature: checkout-api, Property 1: Estados desconocidos redirigen a NOT_FOUND
    """
    status = parse_reservation_status(raw)

    assert isinstance(status, UnrecognizedReservationStatus)
    assert status.raw == raw
    assert classify(status, validated) == RoutingOutcome.NOT_FOUND


@settings(max_examples=100, deadline=None)
@given(
    status=st.sampled_from(list(ReservationStatus)),
    validated=st.one_of(st.none(), st.booleans()),
)
def test_property_2_classification_is_total_and_deterministic(
    status: ReservationStatus,
    validated: bool | None,
) -> None:
    """
    Feature: checkout-api, Property 2: Clasificacion total y determinista
    """
    first = classify(status, validated)

    assert isinstance(first, RoutingOutcome)
    assert classify(status, validated) == first
    if status != ReservationStatus.PENDING:
        assert first == classify(status, None)


@settings(max_examples=50, deadline=None)
@given(
    padding=st.text(alphabet=" \t", max_size=3),
    status=st.sampled_from(list(ReservationStatus)),
)
def test_property_3_stored_status_tolerates_surrounding_whitespace(
    padding: str,
    status: ReservationStatus,
) -> None:
    """
    Feature: checkout-api, Property 3: Lectura tolerante de estados almacenados
    """
    assert parse_reservation_status(f"{padding}{status.value}{padding}") == status
