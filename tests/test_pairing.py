from datetime import date, datetime, timezone

from conftest import make_leg
from core.models import RETURN, OUTBOUND, RoundTrip, SearchParams, SingleLeg, VacationPlan
from core.pairing import group_key, pair_legs, pair_trips, pairing_stats

RT_PARAMS = SearchParams("JFK", "LHR", date(2024, 6, 1), date(2024, 6, 10))


def _ids(groups):
    return [g.id if isinstance(g, (RoundTrip, SingleLeg)) else g.record_id for g in groups]


def _legs_in(groups):
    out = []
    for g in groups:
        out.extend(leg.record_id for leg in g.legs)
    return out


def test_pairs_legs_from_same_search():
    out = make_leg("a", "JFK", "LHR", OUTBOUND, RT_PARAMS, cost=450.0)
    ret = make_leg("b", "LHR", "JFK", RETURN, RT_PARAMS, cost=450.0)

    groups = pair_trips([out, ret])

    assert len(groups) == 1
    rt = groups[0]
    assert isinstance(rt, RoundTrip)
    assert rt.id == "a__b"
    assert rt.outbound_leg is out
    assert rt.return_leg is ret
    assert rt.total_cost == 900.0


def test_airport_mirror_fallback_without_shared_search():
    # leg1 was saved from a one-way search, leg2 from an unrelated one
    leg1 = make_leg("leg1", "JFK", "LHR", OUTBOUND, SearchParams("JFK", "LHR", date(2024, 6, 1)))
    leg2 = make_leg("leg2", "LHR", "JFK", RETURN, None)

    groups = pair_legs([leg1, leg2])

    assert len(groups) == 1
    assert isinstance(groups[0], RoundTrip)
    assert groups[0].id == "leg1__leg2"


def test_first_matching_return_wins():
    out = make_leg("o", "JFK", "LHR", OUTBOUND)
    r1 = make_leg("r1", "LHR", "JFK", RETURN)
    r2 = make_leg("r2", "LHR", "JFK", RETURN)

    groups = pair_legs([out, r1, r2])

    assert _ids(groups) == ["o__r1", "r2"]
    assert isinstance(groups[1], SingleLeg)


def test_group_key_match_beats_earlier_mirror():
    other_search = SearchParams("JFK", "LHR", date(2024, 7, 1), date(2024, 7, 9))
    out = make_leg("o", "JFK", "LHR", OUTBOUND, RT_PARAMS)
    mirror_only = make_leg("m", "LHR", "JFK", RETURN, other_search)
    same_search = make_leg("s", "LHR", "JFK", RETURN, RT_PARAMS)

    groups = pair_legs([out, mirror_only, same_search])

    assert _ids(groups) == ["o__s", "m"]


def test_symmetry_under_input_reordering():
    out = make_leg("a", "JFK", "LHR", OUTBOUND, RT_PARAMS)
    ret = make_leg("b", "LHR", "JFK", RETURN, RT_PARAMS)

    assert _ids(pair_legs([out, ret])) == _ids(pair_legs([ret, out])) == ["a__b"]


def test_repairing_is_idempotent():
    legs = [
        make_leg("1", "JFK", "LHR", OUTBOUND, RT_PARAMS),
        make_leg("2", "SFO", "NRT", OUTBOUND),
        make_leg("3", "LHR", "JFK", RETURN, RT_PARAMS),
        make_leg("4", "CDG", "BOS", RETURN),
    ]
    first = pair_legs(legs)
    underlying = [leg for g in first for leg in g.legs]
    second = pair_legs(underlying)

    assert _ids(first) == _ids(second)


def test_every_leg_in_exactly_one_group():
    legs = [
        make_leg("1", "JFK", "LHR", OUTBOUND),
        make_leg("2", "LHR", "JFK", RETURN),
        make_leg("3", "LHR", "JFK", RETURN),
        make_leg("4", "JFK", "LHR", OUTBOUND),
        make_leg("5", "JFK", "LHR", OUTBOUND),
        make_leg("6", "MIA", "ORD", RETURN),
    ]
    groups = pair_legs(legs)
    seen = _legs_in(groups)

    assert sorted(seen) == sorted(l.record_id for l in legs)
    assert len(seen) == len(set(seen))
    assert _ids(groups) == ["1__2", "4__3", "5", "6"]


def test_unmatched_outbound_and_orphan_returns_order():
    legs = [
        make_leg("r", "CDG", "BOS", RETURN),
        make_leg("o", "JFK", "LHR", OUTBOUND),
    ]
    groups = pair_legs(legs)
    assert _ids(groups) == ["o", "r"]
    assert all(isinstance(g, SingleLeg) for g in groups)


def test_non_flights_pass_through_after_flight_groups():
    vac1 = VacationPlan(record_id="v1", user_id="u1", trip_name="Italy")
    vac2 = VacationPlan(record_id="v2", user_id="u1", trip_name="Japan")
    out = make_leg("a", "JFK", "LHR", OUTBOUND, RT_PARAMS)
    ret = make_leg("b", "LHR", "JFK", RETURN, RT_PARAMS)

    groups = pair_trips([vac1, out, vac2, ret])

    assert _ids(groups) == ["a__b", "v1", "v2"]
    assert groups[1] is vac1
    assert pairing_stats(groups) == {"round_trips": 1, "single_legs": 0, "other": 2}


def test_metadata_falls_back_to_return_leg():
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    out = make_leg("a", "JFK", "LHR", OUTBOUND, trip_name=None, status=None)
    ret = make_leg("b", "LHR", "JFK", RETURN, trip_name="LON to NYC", status="saved", created_at=created)

    rt, = pair_legs([out, ret])

    assert rt.trip_name == "LON to NYC"
    assert rt.status == "saved"
    assert rt.created_at == created


def test_group_key_is_normalized():
    messy = SearchParams(" jfk ", "Lhr", date(2024, 6, 1), date(2024, 6, 10))
    a = make_leg("a", "JFK", "LHR", OUTBOUND, messy)
    b = make_leg("b", "LHR", "JFK", RETURN, RT_PARAMS)
    assert group_key(a) == group_key(b) == ("jfk", "lhr", "2024-06-01", "2024-06-10")


def test_group_key_requires_return_date():
    one_way = make_leg("a", "JFK", "LHR", OUTBOUND, SearchParams("JFK", "LHR", date(2024, 6, 1)))
    no_params = make_leg("b", "JFK", "LHR", OUTBOUND, None)
    assert group_key(one_way) is None
    assert group_key(no_params) is None


def test_group_key_falls_back_to_leg_airports():
    partial = SearchParams("", "", date(2024, 6, 1), date(2024, 6, 10))
    leg = make_leg("a", "JFK", "LHR", OUTBOUND, partial)
    assert group_key(leg) == ("jfk", "lhr", "2024-06-01", "2024-06-10")


def test_group_key_swaps_airports_for_return_leg_fallback():
    partial = SearchParams("", "", date(2024, 6, 1), date(2024, 6, 10))
    out = make_leg("a", "JFK", "LHR", OUTBOUND, partial)
    ret = make_leg("b", "LHR", "JFK", RETURN, partial)
    assert group_key(out) == group_key(ret) == ("jfk", "lhr", "2024-06-01", "2024-06-10")


def test_partial_search_params_still_pair_by_key():
    partial = SearchParams("", "", date(2024, 6, 1), date(2024, 6, 10))
    other = SearchParams("JFK", "LHR", date(2024, 7, 1), date(2024, 7, 9))
    legs = [
        make_leg("a", "JFK", "LHR", OUTBOUND, partial),
        make_leg("c", "LHR", "JFK", RETURN, other),
        make_leg("b", "LHR", "JFK", RETURN, partial),
    ]

    groups = pair_legs(legs)

    # "c" mirrors the route and comes first, but "b" shares the search
    assert _ids(groups) == ["a__b", "c"]


def test_empty_input():
    assert pair_trips([]) == []
