"""
Record shaping for pull request and commit payloads returned by gh api.
"""

import json
import os


GITHUB_WEB_PREFIX = "https://github.com/"
GITHUB_API_PREFIX = "https://api.github.com/"


#============================================
class PayloadShapeError(RuntimeError):
	"""
	Raised when a paginated payload is neither a mapping nor a list.
	"""


#============================================
def is_search_page(value) -> bool:
	"""
	True for a search response page ({"total_count": ..., "items": [...]}).
	"""
	return isinstance(value, dict) and isinstance(value.get("items"), list)


#============================================
def normalize_pages(payload) -> list:
	"""
	Normalize a bare sequence or a sequence of pages into one flat list.

	A top-level mapping is one search page and contributes its items.
	Inside a list, nested lists and search pages are spliced in order.
	"""
	if isinstance(payload, dict):
		return list(payload.get("items", []) or [])
	if not isinstance(payload, list):
		raise PayloadShapeError(
			f"Expected a JSON list or object, got {type(payload).__name__}"
		)
	result = []
	for element in payload:
		if is_search_page(element):
			result.extend(element["items"])
		elif isinstance(element, list):
			result.extend(element)
		else:
			result.append(element)
	return result


#============================================
def normalize_commit_pages(payload) -> list:
	"""
	Like normalize_pages, but a top-level mapping is one commit.
	"""
	if isinstance(payload, dict):
		payload = [payload]
	return normalize_pages(payload)


#============================================
def write_raw_payload(path: str, payload) -> None:
	with open(path, "w", encoding="utf-8") as handle:
		json.dump(payload, handle)


#============================================
def load_raw_payload(path: str) -> list:
	"""
	Load one staged search payload and normalize it.

	Files of two bytes or fewer ("", "[]", "{}") load as an empty list.
	"""
	if os.path.getsize(path) <= 2:
		return []
	with open(path, "r", encoding="utf-8") as handle:
		payload = json.load(handle)
	return normalize_pages(payload)


#============================================
def dedupe_by_url(created_items: list, merged_items: list) -> list[dict]:
	"""
	Merge created-then-merged results, first html_url occurrence wins.
	"""
	seen = set()
	unique = []
	for item in created_items + merged_items:
		url = item.get("html_url", "")
		if not url or url in seen:
			continue
		seen.add(url)
		unique.append(item)
	return unique


#============================================
def pull_request_api_path(summary: dict) -> str | None:
	"""
	Resolve the gh api path for one search result.

	Uses the nested pull_request.url when present, otherwise rebuilds
	repos/{owner}/{repo}/pulls/{number} from html_url.
	"""
	pull_request = summary.get("pull_request") or {}
	api_url = pull_request.get("url", "") if isinstance(pull_request, dict) else ""
	if api_url:
		return api_url.replace(GITHUB_API_PREFIX, "")
	html_url = summary.get("html_url", "") or ""
	parts = html_url.replace(GITHUB_WEB_PREFIX, "").split("/")
	if len(parts) < 4:
		return None
	owner, repo, number = parts[0], parts[1], parts[3]
	return f"repos/{owner}/{repo}/pulls/{number}"


#============================================
def base_repo(detail: dict) -> dict:
	base = detail.get("base") or {}
	return base.get("repo") or {}


#============================================
def build_pull_request_detail(detail: dict) -> dict:
	"""
	Build one normalized pull request record.
	"""
	labels = [label.get("name", "") for label in detail.get("labels", []) or []]
	record = {
		"closed_at": detail.get("closed_at"),
		"created_at": detail.get("created_at"),
		"draft": detail.get("draft", False),
		"html_url": detail.get("html_url"),
		"labels": labels,
		"merged_at": detail.get("merged_at"),
		"number": detail.get("number"),
		"repo_url": base_repo(detail).get("url", ""),
		"state": detail.get("state"),
		"title": detail.get("title"),
		"updated_at": detail.get("updated_at"),
		"additions": detail.get("additions", 0),
		"changed_files": detail.get("changed_files", 0),
		"comments": detail.get("comments", 0),
		"deletions": detail.get("deletions", 0),
		"merge_commit_sha": detail.get("merge_commit_sha"),
		"merged": detail.get("merged", False),
		"review_comments": detail.get("review_comments", 0),
	}
	return record


#============================================
def build_commit_record(commit: dict) -> dict:
	"""
	Build one normalized commit record.
	"""
	commit_data = commit.get("commit") or {}
	author_data = commit_data.get("author") or {}
	record = {
		"date": author_data.get("date"),
		"message": commit_data.get("message", ""),
		"sha": commit.get("sha"),
		"url": commit.get("html_url"),
	}
	return record


#============================================
def sort_pull_requests(records: list[dict]) -> list[dict]:
	# missing created_at sorts as "", i.e. last
	return sorted(records, key=lambda record: record.get("created_at") or "", reverse=True)


#============================================
def sort_commits(records: list[dict]) -> list[dict]:
	return sorted(records, key=lambda record: record.get("date") or "", reverse=True)
