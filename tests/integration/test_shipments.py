import pytest
from datetime import datetime
from sqlalchemy import func, select

from app.models.logistics.tracking_event import TrackingEvent
from app.models.shared.enums import ShipmentPriority, ShipmentStatus

SHIPMENT_FIELDS = """
  id shipperName carrierName pickupLocation pickupDate deliveryLocation deliveryDate
  status priority trackingNumber rate weight dimensions specialInstructions flagged
  createdAt updatedAt
  createdBy { id email }
  updatedBy { id email }
  trackingEvents { id timestamp location status description }
"""

CREATE = f"""
mutation Create($input: CreateShipmentInput!) {{
  createShipment(input: $input) {{ {SHIPMENT_FIELDS} }}
}}
"""

UPDATE = f"""
mutation Update($id: ID!, $input: UpdateShipmentInput!) {{
  updateShipment(id: $id, input: $input) {{ {SHIPMENT_FIELDS} }}
}}
"""

DELETE = "mutation Delete($id: ID!) { deleteShipment(id: $id) }"

ADD_EVENT = """
mutation AddEvent($shipmentId: ID!, $input: AddTrackingEventInput!) {
  addTrackingEvent(shipmentId: $shipmentId, input: $input) {
    id
    trackingEvents { status location timestamp }
  }
}
"""

DETAIL = f"query Detail($id: ID!) {{ shipment(id: $id) {{ {SHIPMENT_FIELDS} }} }}"

LIST = """
query List($filters: ShipmentFilters, $sort: ShipmentSort, $page: Int, $limit: Int) {
  shipments(filters: $filters, sort: $sort, page: $page, limit: $limit) {
    nodes { id carrierName status rate }
    pageInfo { hasNextPage hasPreviousPage totalCount totalPages currentPage }
  }
}
"""

STATS = """
{
  shipmentStats {
    totalShipments
    byStatus { status count }
    byPriority { priority count }
    totalRevenue
  }
}
"""

NEW_SHIPMENT = {
    "shipperName": "ABC Corp",
    "carrierName": "FedEx",
    "pickupLocation": "New York, NY",
    "pickupDate": "2024-06-01",
    "deliveryLocation": "Chicago, IL",
    "deliveryDate": "2024-06-04",
    "trackingNumber": "TRKNEW0001",
    "rate": 1250.5,
    "weight": 320,
    "dimensions": "40x30x20 cm",
}


def error_code(result: dict) -> str:
    return result["errors"][0]["extensions"]["code"]


@pytest.mark.asyncio
class TestCreateShipment:
    async def test_create_stamps_creator_and_defaults(self, graphql, employee_user, employee_token):
        result = await graphql(CREATE, {"input": NEW_SHIPMENT}, token=employee_token)

        assert "errors" not in result
        shipment = result["data"]["createShipment"]
        assert shipment["status"] == "PENDING"
        assert shipment["priority"] == "MEDIUM"
        assert shipment["flagged"] is False
        assert shipment["rate"] == 1250.5
        assert shipment["pickupDate"] == "2024-06-01"
        assert shipment["specialInstructions"] is None
        assert shipment["createdBy"]["id"] == str(employee_user.id)
        assert shipment["updatedBy"]["id"] == str(employee_user.id)
        assert shipment["trackingEvents"] == []

    async def test_create_with_explicit_enums(self, graphql, employee_token):
        data = {**NEW_SHIPMENT, "status": "IN_TRANSIT", "priority": "URGENT", "flagged": True}
        result = await graphql(CREATE, {"input": data}, token=employee_token)

        shipment = result["data"]["createShipment"]
        assert (shipment["status"], shipment["priority"], shipment["flagged"]) == ("IN_TRANSIT", "URGENT", True)

    async def test_create_requires_authentication(self, graphql):
        result = await graphql(CREATE, {"input": NEW_SHIPMENT})

        assert result["data"] is None
        assert error_code(result) == "UNAUTHENTICATED"

    async def test_create_rejects_negative_rate(self, graphql, employee_token):
        result = await graphql(CREATE, {"input": {**NEW_SHIPMENT, "rate": -10}}, token=employee_token)
        assert error_code(result) == "BAD_USER_INPUT"

    async def test_create_rejects_unknown_status(self, graphql, employee_token):
        result = await graphql(CREATE, {"input": {**NEW_SHIPMENT, "status": "LOST"}}, token=employee_token)
        assert "errors" in result
        assert result["data"] is None


@pytest.mark.asyncio
class TestListShipments:
    async def test_limit_is_capped_at_one_hundred(self, graphql, employee_token, shipment_factory):
        for _ in range(105):
            await shipment_factory()

        result = await graphql(LIST, {"limit": 500}, token=employee_token)

        connection = result["data"]["shipments"]
        assert len(connection["nodes"]) == 100
        assert connection["pageInfo"]["totalCount"] == 105
        assert connection["pageInfo"]["totalPages"] == 2
        assert connection["pageInfo"]["hasNextPage"] is True

    async def test_defaults_to_first_page_of_twenty(self, graphql, employee_token, shipment_factory):
        for _ in range(25):
            await shipment_factory()

        result = await graphql(LIST, token=employee_token)

        connection = result["data"]["shipments"]
        assert len(connection["nodes"]) == 20
        assert connection["pageInfo"]["currentPage"] == 1
        assert connection["pageInfo"]["hasPreviousPage"] is False

    async def test_status_filter_counts_all_matches(self, graphql, employee_token, shipment_factory):
        for _ in range(3):
            await shipment_factory(status=ShipmentStatus.DELIVERED)
        for _ in range(2):
            await shipment_factory(status=ShipmentStatus.PENDING)

        result = await graphql(LIST, {"filters": {"status": "DELIVERED"}, "limit": 2}, token=employee_token)

        connection = result["data"]["shipments"]
        assert [node["status"] for node in connection["nodes"]] == ["DELIVERED", "DELIVERED"]
        assert connection["pageInfo"]["totalCount"] == 3
        assert connection["pageInfo"]["totalPages"] == 2

    async def test_search_is_case_insensitive(self, graphql, employee_token, shipment_factory):
        fedex = await shipment_factory(carrier_name="FedEx")
        await shipment_factory(carrier_name="UPS")

        result = await graphql(LIST, {"filters": {"search": "fedex"}}, token=employee_token)

        nodes = result["data"]["shipments"]["nodes"]
        assert [node["id"] for node in nodes] == [str(fedex.id)]

    async def test_search_spans_locations_and_tracking_number(self, graphql, employee_token, shipment_factory):
        await shipment_factory(delivery_location="Mumbai, India")
        await shipment_factory(tracking_number="TRKABC999")
        await shipment_factory()

        by_location = await graphql(LIST, {"filters": {"search": "mumbai"}}, token=employee_token)
        by_tracking = await graphql(LIST, {"filters": {"search": "abc999"}}, token=employee_token)

        assert by_location["data"]["shipments"]["pageInfo"]["totalCount"] == 1
        assert by_tracking["data"]["shipments"]["pageInfo"]["totalCount"] == 1

    async def test_search_treats_wildcards_literally(self, graphql, employee_token, shipment_factory):
        await shipment_factory()
        result = await graphql(LIST, {"filters": {"search": "%"}}, token=employee_token)
        assert result["data"]["shipments"]["pageInfo"]["totalCount"] == 0

    async def test_priority_and_flagged_filters(self, graphql, employee_token, shipment_factory):
        await shipment_factory(priority=ShipmentPriority.URGENT, flagged=True)
        await shipment_factory(priority=ShipmentPriority.URGENT)
        await shipment_factory(flagged=True)

        result = await graphql(LIST, {"filters": {"priority": "URGENT", "flagged": True}}, token=employee_token)
        assert result["data"]["shipments"]["pageInfo"]["totalCount"] == 1

    async def test_default_sort_is_newest_first(self, graphql, employee_token, shipment_factory):
        first = await shipment_factory()
        second = await shipment_factory()

        result = await graphql(LIST, token=employee_token)

        ids = [node["id"] for node in result["data"]["shipments"]["nodes"]]
        assert ids == [str(second.id), str(first.id)]

    async def test_sort_by_rate_ascending(self, graphql, employee_token, shipment_factory):
        for rate in (300, 100, 200):
            await shipment_factory(rate=rate)

        result = await graphql(LIST, {"sort": {"field": "rate", "order": "ASC"}}, token=employee_token)

        assert [node["rate"] for node in result["data"]["shipments"]["nodes"]] == [100.0, 200.0, 300.0]

    async def test_unknown_sort_field_is_rejected(self, graphql, employee_token):
        result = await graphql(LIST, {"sort": {"field": "hashedPassword", "order": "ASC"}}, token=employee_token)
        assert error_code(result) == "BAD_USER_INPUT"

    async def test_zero_page_and_limit_use_defaults(self, graphql, employee_token, shipment_factory):
        await shipment_factory()

        result = await graphql(LIST, {"page": 0, "limit": 0}, token=employee_token)

        page_info = result["data"]["shipments"]["pageInfo"]
        assert page_info["currentPage"] == 1
        assert page_info["totalCount"] == 1
        assert len(result["data"]["shipments"]["nodes"]) == 1

    async def test_negative_page_is_rejected(self, graphql, employee_token):
        result = await graphql(LIST, {"page": -1}, token=employee_token)
        assert error_code(result) == "BAD_USER_INPUT"

    async def test_list_requires_authentication(self, graphql):
        result = await graphql(LIST)
        assert error_code(result) == "UNAUTHENTICATED"


@pytest.mark.asyncio
class TestShipmentDetail:
    async def test_detail_includes_relations(self, graphql, employee_user, employee_token, shipment_factory):
        shipment = await shipment_factory(created_by_id=employee_user.id, updated_by_id=employee_user.id)
        for day in (1, 3, 2):
            await graphql(
                ADD_EVENT,
                {
                    "shipmentId": str(shipment.id),
                    "input": {
                        "timestamp": f"2024-03-0{day}T10:00:00+00:00",
                        "location": "Hub",
                        "status": f"Day {day}",
                        "description": "Scanned",
                    },
                },
                token=employee_token,
            )

        result = await graphql(DETAIL, {"id": str(shipment.id)}, token=employee_token)

        detail = result["data"]["shipment"]
        assert detail["createdBy"]["email"] == "employee@tms.com"
        assert [event["status"] for event in detail["trackingEvents"]] == ["Day 3", "Day 2", "Day 1"]

    async def test_unknown_id_returns_null(self, graphql, employee_token):
        result = await graphql(DETAIL, {"id": "424242"}, token=employee_token)

        assert "errors" not in result
        assert result["data"]["shipment"] is None

    async def test_malformed_id_returns_null(self, graphql, employee_token):
        result = await graphql(DETAIL, {"id": "not-a-number"}, token=employee_token)
        assert result["data"]["shipment"] is None


@pytest.mark.asyncio
class TestShipmentStats:
    async def test_stats_aggregate_everything(self, graphql, admin_token, shipment_factory):
        await shipment_factory(status=ShipmentStatus.DELIVERED, priority=ShipmentPriority.HIGH, rate=100)
        await shipment_factory(status=ShipmentStatus.DELIVERED, priority=ShipmentPriority.LOW, rate=50.25)
        await shipment_factory(status=ShipmentStatus.DELAYED, priority=ShipmentPriority.HIGH, rate=10)

        result = await graphql(STATS, token=admin_token)

        stats = result["data"]["shipmentStats"]
        assert stats["totalShipments"] == 3
        assert stats["totalRevenue"] == 160.25
        by_status = {row["status"]: row["count"] for row in stats["byStatus"]}
        assert by_status == {"PENDING": 0, "IN_TRANSIT": 0, "DELIVERED": 2, "CANCELLED": 0, "DELAYED": 1}
        by_priority = {row["priority"]: row["count"] for row in stats["byPriority"]}
        assert by_priority == {"LOW": 1, "MEDIUM": 0, "HIGH": 2, "URGENT": 0}

    async def test_empty_stats(self, graphql, admin_token):
        result = await graphql(STATS, token=admin_token)

        stats = result["data"]["shipmentStats"]
        assert stats["totalShipments"] == 0
        assert stats["totalRevenue"] == 0

    async def test_stats_require_admin(self, graphql, employee_token):
        result = await graphql(STATS, token=employee_token)

        assert result["data"] is None
        assert error_code(result) == "FORBIDDEN"


@pytest.mark.asyncio
class TestUpdateShipment:
    async def test_update_restamps_updater(self, graphql, employee_user, admin_user, employee_token, admin_token):
        created = (await graphql(CREATE, {"input": NEW_SHIPMENT}, token=employee_token))["data"]["createShipment"]

        result = await graphql(
            UPDATE,
            {"id": created["id"], "input": {"status": "DELIVERED", "specialInstructions": "Leave at dock"}},
            token=admin_token,
        )

        updated = result["data"]["updateShipment"]
        assert updated["status"] == "DELIVERED"
        assert updated["specialInstructions"] == "Leave at dock"
        assert updated["carrierName"] == "FedEx"
        assert updated["createdBy"]["id"] == str(employee_user.id)
        assert updated["updatedBy"]["id"] == str(admin_user.id)
        assert datetime.fromisoformat(updated["updatedAt"]) > datetime.fromisoformat(created["updatedAt"])

    async def test_successive_updates_strictly_increase_updated_at(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()
        stamps = []
        for status in ("IN_TRANSIT", "DELAYED", "DELIVERED"):
            result = await graphql(UPDATE, {"id": str(shipment.id), "input": {"status": status}}, token=employee_token)
            stamps.append(datetime.fromisoformat(result["data"]["updateShipment"]["updatedAt"]))

        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 3

    async def test_any_status_may_follow_any_other(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory(status=ShipmentStatus.DELIVERED)
        result = await graphql(UPDATE, {"id": str(shipment.id), "input": {"status": "PENDING"}}, token=employee_token)
        assert result["data"]["updateShipment"]["status"] == "PENDING"

    async def test_update_unknown_shipment(self, graphql, employee_token):
        result = await graphql(UPDATE, {"id": "424242", "input": {"flagged": True}}, token=employee_token)

        assert result["data"] is None
        assert error_code(result) == "NOT_FOUND"

    async def test_special_instructions_can_be_cleared(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory(special_instructions="Fragile")
        result = await graphql(
            UPDATE, {"id": str(shipment.id), "input": {"specialInstructions": None}}, token=employee_token
        )
        assert result["data"]["updateShipment"]["specialInstructions"] is None

    async def test_required_field_cannot_be_nulled(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()
        result = await graphql(UPDATE, {"id": str(shipment.id), "input": {"carrierName": None}}, token=employee_token)
        assert error_code(result) == "BAD_USER_INPUT"


@pytest.mark.asyncio
class TestDeleteShipment:
    async def test_employee_cannot_delete(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()

        result = await graphql(DELETE, {"id": str(shipment.id)}, token=employee_token)

        assert error_code(result) == "FORBIDDEN"
        still_there = await graphql(DETAIL, {"id": str(shipment.id)}, token=employee_token)
        assert still_there["data"]["shipment"] is not None

    async def test_admin_delete_cascades_events(self, graphql, database, admin_token, shipment_factory):
        shipment = await shipment_factory()
        await graphql(
            ADD_EVENT,
            {
                "shipmentId": str(shipment.id),
                "input": {"timestamp": "2024-03-02T08:00:00+00:00", "location": "Hub", "status": "Departed", "description": "Left hub"},
            },
            token=admin_token,
        )

        result = await graphql(DELETE, {"id": str(shipment.id)}, token=admin_token)
        assert result["data"]["deleteShipment"] is True

        detail = await graphql(DETAIL, {"id": str(shipment.id)}, token=admin_token)
        assert detail["data"]["shipment"] is None
        async with database.session() as session:
            remaining = (await session.execute(
                select(func.count(TrackingEvent.id)).where(TrackingEvent.shipment_id == shipment.id)
            )).scalar()
        assert remaining == 0

    async def test_delete_missing_shipment_returns_true(self, graphql, admin_token):
        result = await graphql(DELETE, {"id": "424242"}, token=admin_token)
        assert result["data"]["deleteShipment"] is True


@pytest.mark.asyncio
class TestTrackingEvents:
    async def test_add_event_returns_history_newest_first(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()
        events = [
            ("2024-03-01T09:00:00+00:00", "Picked up"),
            ("2024-03-03T09:00:00+00:00", "Delivered"),
            ("2024-03-02T09:00:00+00:00", "In transit"),
        ]
        for timestamp, status in events:
            result = await graphql(
                ADD_EVENT,
                {
                    "shipmentId": str(shipment.id),
                    "input": {"timestamp": timestamp, "location": "Dallas, TX", "status": status, "description": status},
                },
                token=employee_token,
            )

        history = result["data"]["addTrackingEvent"]["trackingEvents"]
        assert [event["status"] for event in history] == ["Delivered", "In transit", "Picked up"]

    async def test_events_with_mixed_offsets_sort_by_instant(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()
        events = [
            ("2024-03-01T10:00:00+00:00", "Arrived"),
            # 07:00 UTC: earlier despite the later wall-clock time
            ("2024-03-01T12:00:00+05:00", "Departed"),
        ]
        for timestamp, status in events:
            await graphql(
                ADD_EVENT,
                {
                    "shipmentId": str(shipment.id),
                    "input": {"timestamp": timestamp, "location": "Hub", "status": status, "description": status},
                },
                token=employee_token,
            )

        result = await graphql(
            "query Events($id: ID!) { shipment(id: $id) { trackingEvents { status timestamp } } }",
            {"id": str(shipment.id)},
            token=employee_token,
        )

        history = result["data"]["shipment"]["trackingEvents"]
        assert [event["status"] for event in history] == ["Arrived", "Departed"]
        assert history[1]["timestamp"].startswith("2024-03-01T07:00:00")

    async def test_add_event_to_unknown_shipment(self, graphql, employee_token):
        result = await graphql(
            ADD_EVENT,
            {
                "shipmentId": "424242",
                "input": {"timestamp": "2024-03-01T09:00:00+00:00", "location": "X", "status": "Y", "description": "Z"},
            },
            token=employee_token,
        )

        assert result["data"] is None
        assert error_code(result) == "NOT_FOUND"

    async def test_events_seen_in_same_request_after_write(self, graphql, employee_token, shipment_factory):
        shipment = await shipment_factory()
        mutation = """
        mutation Both($id: ID!, $input: AddTrackingEventInput!) {
          first: addTrackingEvent(shipmentId: $id, input: $input) { trackingEvents { status } }
          second: addTrackingEvent(shipmentId: $id, input: $input) { trackingEvents { status } }
        }
        """
        event = {"timestamp": "2024-03-01T09:00:00+00:00", "location": "Hub", "status": "Scanned", "description": "Scan"}

        result = await graphql(mutation, {"id": str(shipment.id), "input": event}, token=employee_token)

        assert len(result["data"]["first"]["trackingEvents"]) == 1
        assert len(result["data"]["second"]["trackingEvents"]) == 2


@pytest.mark.asyncio
class TestQueryCost:
    async def test_expensive_query_is_rejected_before_execution(self, graphql, employee_token, shipment_factory, sql_log):
        await shipment_factory()
        fields = " ".join(f"f{i}: id" for i in range(60))
        sql_log.clear()

        result = await graphql(f"{{ shipments {{ nodes {{ {fields} }} }} }}", token=employee_token)

        assert result["data"] is None
        assert result["errors"][0]["extensions"]["code"] == "QUERY_TOO_COMPLEX"
        assert "1221" in result["errors"][0]["message"]
        assert not [statement for statement in sql_log if "FROM shipments" in statement]

    async def test_query_under_ceiling_runs(self, graphql, employee_token, shipment_factory):
        await shipment_factory()
        fields = " ".join(f"f{i}: id" for i in range(40))

        result = await graphql(f"{{ shipments {{ nodes {{ {fields} }} }} }}", token=employee_token)

        assert "errors" not in result
        assert len(result["data"]["shipments"]["nodes"]) == 1
