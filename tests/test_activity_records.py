import pytest

from actlib import activity_records


#============================================
def test_dedupe_prefers_created_copy() -> None:
	"""
	Overlapping URLs appear once, keeping the created-set copy.
	"""
	created = [
		{"html_url": "https://github.com/o/r/pull/1", "source": "created"},
		{"html_url": "https://github.com/o/r/pull/2", "source": "created"},
	]
	merged = [
		{"html_url": "https://github.com/o/r/pull/2", "source": "merged"},
		{"html_url": "https://github.com/o/r/pull/3", "source": "merged"},
		{"html_url": "https://github.com/o/r/pull/1", "source": "merged"},
	]
	unique = activity_records.dedupe_by_url(created, merged)
	assert [item["html_url"][-1] for item in unique] == ["1", "2", "3"]
	assert unique[1]["source"] == "created"


#============================================
def test_dedupe_drops_items_without_url() -> None:
	unique = activity_records.dedupe_by_url([{"title": "no url"}], [{"html_url": ""}])
	assert unique == []


#============================================
def test_normalize_pages_shapes_agree() -> None:
	"""
	Flat lists, nested pages, and search pages flatten to the same order.
	"""
	first = {"html_url": "a"}
	second = {"html_url": "b"}
	third = {"html_url": "c"}
	expected = [first, second, third]
	assert activity_records.normalize_pages([first, second, third]) == expected
	assert activity_records.normalize_pages([[first, second], [third]]) == expected
	assert activity_records.normalize_pages([[first], second, [third]]) == expected
	search_pages = [
		{"total_count": 3, "items": [first, second]},
		{"total_count": 3, "items": [third]},
	]
	assert activity_records.normalize_pages(search_pages) == expected
	assert activity_records.normalize_pages({"items": expected}) == expected


#============================================
def test_normalize_pages_rejects_scalar_payload() -> None:
	"""
	A bare string payload is a shape error, not an empty result.
	"""
	with pytest.raises(activity_records.PayloadShapeError):
		activity_records.normalize_pages("rate limited")


#============================================
def test_normalize_commit_pages_wraps_single_commit() -> None:
	commit = {"sha": "abc", "commit": {"message": "m"}}
	assert activity_records.normalize_commit_pages(commit) == [commit]
	assert activity_records.normalize_commit_pages([[commit], [commit]]) == [commit, commit]


#============================================
def test_load_raw_payload_short_files_are_empty(tmp_path) -> None:
	"""
	Empty or two-byte staged files load as no results.
	"""
	for index, text in enumerate(["", "[]", "{}"]):
		path = tmp_path / f"raw_{index}.json"
		path.write_text(text, encoding="utf-8")
		assert activity_records.load_raw_payload(str(path)) == []


#============================================
def test_raw_payload_round_trip_normalizes(tmp_path) -> None:
	path = str(tmp_path / "created.json")
	activity_records.write_raw_payload(path, [{"items": [{"html_url": "x"}]}])
	assert activity_records.load_raw_payload(path) == [{"html_url": "x"}]


#============================================
def test_api_path_from_nested_locator() -> None:
	"""
	The nested pull_request.url is used with its host prefix stripped.
	"""
	summary = {
		"html_url": "https://github.com/o/r/pull/42",
		"pull_request": {"url": "https://api.github.com/repos/o/r/pulls/42"},
	}
	assert activity_records.pull_request_api_path(summary) == "repos/o/r/pulls/42"


#============================================
def test_api_path_reconstructed_from_html_url() -> None:
	"""
	Without a nested locator the path is rebuilt from html_url segments.
	"""
	summary = {"html_url": "https://github.com/o/r/pull/42"}
	assert activity_records.pull_request_api_path(summary) == "repos/o/r/pulls/42"
	assert activity_records.pull_request_api_path({"html_url": "https://github.com/o/r"}) is None


#============================================
def test_build_pull_request_detail_defaults() -> None:
	"""
	Detail records carry fixed fields with zero/false defaults.
	"""
	detail = {
		"number": 7,
		"title": "Fix parser",
		"created_at": "2026-01-03T10:00:00Z",
		"labels": [{"name": "bug"}, {"name": "parser"}],
		"base": {"repo": {"url": "https://api.github.com/repos/o/r", "full_name": "o/r"}},
	}
	record = activity_records.build_pull_request_detail(detail)
	assert record["labels"] == ["bug", "parser"]
	assert record["repo_url"] == "https://api.github.com/repos/o/r"
	assert record["additions"] == 0
	assert record["merged"] is False
	assert record["draft"] is False
	assert record["merged_at"] is None
	assert "base" not in record


#============================================
def test_build_commit_record() -> None:
	commit = {
		"sha": "abc123",
		"html_url": "https://github.com/o/r/commit/abc123",
		"commit": {
			"message": "Add thing",
			"author": {"date": "2026-01-04T08:00:00Z"},
		},
	}
	assert activity_records.build_commit_record(commit) == {
		"date": "2026-01-04T08:00:00Z",
		"message": "Add thing",
		"sha": "abc123",
		"url": "https://github.com/o/r/commit/abc123",
	}


#============================================
def test_sort_pull_requests_missing_created_at_last() -> None:
	"""
	Newest first; records without created_at sort after all others.
	"""
	records = [
		{"number": 1, "created_at": "2026-01-02T00:00:00Z"},
		{"number": 2, "created_at": None},
		{"number": 3, "created_at": "2026-01-05T00:00:00Z"},
		{"number": 4},
	]
	ordered = activity_records.sort_pull_requests(records)
	assert [record["number"] for record in ordered[:2]] == [3, 1]
	assert {record["number"] for record in ordered[2:]} == {2, 4}


#============================================
def test_sort_commits_by_date_descending() -> None:
	records = [{"date": "2026-01-01"}, {"date": "2026-01-03"}, {"date": "2026-01-02"}]
	ordered = activity_records.sort_commits(records)
	assert [record["date"] for record in ordered] == ["2026-01-03", "2026-01-02", "2026-01-01"]
