import pytest

from hostrecon.planner import JoinPlanner
from hostrecon.query.plan import JoinItem, OrderItem, QueryPlan, QueryResult, SelectItem


def test_plan_renders_joins_filters_and_order():
    plan = QueryPlan(
        selects=[SelectItem("s.fqdn", "fqdn"), SelectItem("v.username")],
        source="service",
        source_alias="s",
        joins=[JoinItem(table="vault", alias="v", on="s.fqdn = v.address", kind="left")],
        filters=["v.address IS NULL"],
        order_by=[OrderItem("s.fqdn"), OrderItem("v.username")],
    )

    assert plan.render() == (
        "SELECT s.fqdn AS fqdn, v.username FROM service AS s "
        "LEFT JOIN vault AS v ON s.fqdn = v.address "
        "WHERE (v.address IS NULL) ORDER BY s.fqdn, v.username"
    )


@pytest.mark.parametrize("kind", ["RIGHT", "FULL", "full outer", "CROSS"])
def test_unsupported_join_types_are_rejected(kind):
    with pytest.raises(ValueError):
        JoinItem(table="vault", on="s.fqdn = v.address", kind=kind)


def test_join_requires_predicate():
    with pytest.raises(ValueError):
        JoinItem(table="vault", on=" ")


def test_render_requires_source():
    with pytest.raises(ValueError):
        QueryPlan(selects=[SelectItem("1")]).render()


def test_anti_joins_share_the_match_predicate():
    planner = JoinPlanner()
    service_only = planner.service_only_plan()
    vault_only = planner.vault_only_plan()
    matched = planner.matched_plan()

    assert matched.joins[0].kind == "INNER"
    assert service_only.joins[0].kind == "LEFT"
    assert vault_only.joins[0].kind == "LEFT"
    assert matched.joins[0].on == service_only.joins[0].on == vault_only.joins[0].on
    assert list(service_only.filters) == ["v.address IS NULL"]
    assert list(vault_only.filters) == ["s.fqdn IS NULL"]
    assert service_only.order_by[0].expression == "s.fqdn"
    assert vault_only.order_by[0].expression == "v.address"


def test_query_result_scalar_by_alias():
    result = QueryResult.from_records([{"ROW_COUNT": 4}])

    assert result.scalar("row_count") == 4
    assert len(result) == 1
    assert QueryResult.from_records([]).scalar() is None
