import logging
import os
from datetime import date, timedelta

import pandas as pd
import streamlit as st

from airports_service import popular_destinations
from core.formatting import format_duration, format_group_label, format_record_label
from core.models import RoundTrip, SearchParams, SingleLeg, VacationPlan
from core.pairing import pair_trips, pairing_stats
from providers.amadeus_provider import AmadeusProvider
from providers.mock_provider import MockProvider
from services.amadeus_client import AmadeusClient, TokenCache
from services.flight_search import FlightSearchError, FlightSearchService, SearchValidationError
from services.offer_bridge import records_to_rows
from services.weather_service import WeatherService, WeatherServiceError
from trip_store import SqliteTripStore

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

st.set_page_config(
    page_title="Trip Planner",
    layout="wide",
)


@st.cache_resource
def get_store() -> SqliteTripStore:
    return SqliteTripStore()


@st.cache_resource
def get_token_cache() -> TokenCache:
    # One token per app process, owned here and handed to each client
    return TokenCache()


def get_search_service(use_live: bool) -> FlightSearchService:
    if use_live:
        provider = AmadeusProvider(AmadeusClient(token_cache=get_token_cache()))
    else:
        provider = MockProvider()
    return FlightSearchService(provider)


store = get_store()

st.title("✈️ Trip Planner")

with st.sidebar:
    st.header("Account")
    user_id = st.text_input("User", value=st.session_state.get("user_id", "demo"))
    st.session_state["user_id"] = user_id

    use_live = st.checkbox(
        "Live Amadeus search",
        value=bool(os.getenv("AMADEUS_CLIENT_ID")),
        help="When disabled, a deterministic offline provider is used.",
    )

tab_search, tab_trips = st.tabs(["Search flights", "Stored trips"])

with tab_search:
    col_a, col_b, col_c = st.columns(3)
    with col_a:
        origin = st.text_input("From", "JFK")
        passengers = st.number_input("Passengers", min_value=1, value=1, step=1)
    with col_b:
        destination = st.text_input("To", "LHR")
        st.caption("Popular: " + ", ".join(d.airport for d in popular_destinations(exclude=origin)))
    with col_c:
        today = date.today()
        departure_date = st.date_input("Departure date", value=today + timedelta(days=14), min_value=today)
        round_trip = st.checkbox("Round trip", value=True)
        return_date = None
        if round_trip:
            return_date = st.date_input(
                "Return date",
                value=departure_date + timedelta(days=7),
                min_value=departure_date,
            )

    if st.button("Search"):
        params = SearchParams(
            origin=origin,
            destination=destination,
            departure_date=departure_date,
            return_date=return_date,
            passengers=int(passengers),
        )
        try:
            st.session_state["results"] = get_search_service(use_live).search(params)
        except (SearchValidationError, FlightSearchError, ValueError) as e:
            st.error(str(e))
            st.session_state.pop("results", None)

    results = st.session_state.get("results")
    if results is not None:
        st.subheader(f"{results.total_results} results")
        pax = results.search_params.passengers if results.search_params else 1

        for title, records in (
            ("Outbound flights", results.outbound_records),
            ("Return flights", results.return_records),
        ):
            if not records:
                continue
            st.markdown(f"### {title}")
            st.dataframe(pd.DataFrame(records_to_rows(records, pax)), width="stretch")

            by_id = {r.id: r for r in records}
            chosen = st.selectbox(
                f"Save from {title.lower()}",
                list(by_id),
                format_func=lambda rid: format_record_label(by_id[rid]),
                key=f"pick-{title}",
            )
            if st.button("Save flight", key=f"save-{title}"):
                store.save_flight(user_id, by_id[chosen], results.search_params)
                st.success(f"Saved {format_record_label(by_id[chosen])}")

        if results.total_results == 0:
            st.warning("No offers found for this search.")

with tab_trips:
    trips = store.get_user_trips(user_id)
    groups = pair_trips(trips)
    stats = pairing_stats(groups)

    c1, c2, c3 = st.columns(3)
    c1.metric("Round trips", stats["round_trips"])
    c2.metric("One-way flights", stats["single_legs"])
    c3.metric("Vacation plans", stats["other"])

    with st.expander("Plan a vacation"):
        with st.form("vacation"):
            trip_name = st.text_input("Trip name")
            v_dest = st.text_input("Destination")
            budget = st.number_input("Budget (USD)", min_value=0.0, value=0.0)
            notes = st.text_area("Notes")
            if st.form_submit_button("Create"):
                try:
                    store.create_vacation(user_id, trip_name, destination=v_dest, budget=budget, notes=notes)
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

    weather = WeatherService()

    for g in groups:
        if isinstance(g, (RoundTrip, SingleLeg)):
            st.markdown(f"**{format_group_label(g)}** · ${g.total_cost:.2f}")
            for leg in g.legs:
                f = leg.flight
                st.caption(
                    f"{f.direction.title()}: {f.airline} {f.flight_number} · "
                    f"{f.departure.date or ''} {f.departure.time or ''} → "
                    f"{f.arrival.date or ''} {f.arrival.time or ''} · {format_duration(f)}"
                )
            arrival_city = g.legs[0].flight.arrival.city
            if weather.api_key and st.toggle(f"Weather in {arrival_city}", key=f"wx-{g.id}"):
                try:
                    forecast = weather.get_city_forecast(arrival_city)
                    st.table(pd.DataFrame([d.__dict__ for d in forecast.days]))
                except (WeatherServiceError, ValueError) as e:
                    st.info(str(e))
            if st.button("Remove", key=f"rm-{g.id}"):
                for leg in g.legs:
                    store.delete_trip(leg.record_id)
                st.rerun()
        elif isinstance(g, VacationPlan):
            st.markdown(f"**🏖️ {g.trip_name}** · {g.destination or 'TBD'} · budget ${g.budget:.0f}")
            if g.notes:
                st.caption(g.notes)
            if st.button("Remove", key=f"rm-{g.record_id}"):
                store.delete_trip(g.record_id)
                st.rerun()

    if not groups:
        st.info("No stored trips yet. Save a flight from the search tab. 🚀")
