from datetime import date

from tasklist.filters import CompiledFilter, FilterCriteria, compile_filter


def test_owner_only_when_no_criteria():
    compiled = compile_filter(FilterCriteria(), "u1")
    assert compiled.where == "userId = ?"
    assert compiled.params == ("u1",)


def test_criteria_are_anded_in_order():
    criteria = FilterCriteria(
        completed=False,
        priority="high",
        category="work",
        tags="urgent",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
    )
    compiled = compile_filter(criteria, "u1")
    assert compiled.where == (
        "userId = ? AND completed = ? AND priority = ? AND category = ? "
        "AND instr(tags, ?) > 0 AND date(createdAt) >= date(?) AND date(createdAt) <= date(?)"
    )
    assert compiled.params == ("u1", 0, "high", "work", "urgent", "2024-01-01", "2024-01-31")


def test_values_are_never_interpolated():
    hostile = "x' OR '1'='1"
    compiled = compile_filter(FilterCriteria(category=hostile, tags=hostile), hostile)
    sql, params = compiled.page_query(limit=10, offset=0)
    assert hostile not in sql
    assert params.count(hostile) == 3


def test_count_and_page_share_predicate():
    compiled = compile_filter(FilterCriteria(completed=True), "u1")
    count_sql, count_params = compiled.count_query()
    page_sql, page_params = compiled.page_query(limit=5, offset=10)
    assert count_sql.endswith(f"WHERE {compiled.where}")
    assert f"WHERE {compiled.where} ORDER BY createdAt DESC" in page_sql
    assert page_params == count_params + (5, 10)


def test_from_query_completed_is_tri_state():
    assert FilterCriteria.from_query().completed is None
    assert FilterCriteria.from_query(completed="true").completed is True
    assert FilterCriteria.from_query(completed="FALSE").completed is False
    assert FilterCriteria.from_query(completed="0").completed is False


def test_from_query_ignores_malformed_values():
    criteria = FilterCriteria.from_query(
        completed="maybe",
        priority="urgent",
        start_date="not-a-date",
        end_date="2024-13-45",
        category="",
    )
    assert criteria == FilterCriteria()
    assert compile_filter(criteria, "u1") == CompiledFilter((("userId = ?", "u1"),))


def test_from_query_normalizes_priority_and_dates():
    criteria = FilterCriteria.from_query(priority=" High ", start_date="2024-03-05T10:00:00")
    assert criteria.priority == "high"
    assert criteria.start_date == date(2024, 3, 5)
