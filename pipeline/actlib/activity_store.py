import json
import os
from datetime import datetime
from datetime import timezone

from actlib import activity_period
from actlib import activity_records


INDEX_FILE_NAME = "index.json"


#============================================
def utc_now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


#============================================
def build_output_document(
	user: str,
	period: activity_period.Period,
	pull_requests: list[dict],
	commits: dict[str, list[dict]],
	generated_at: str | None = None,
) -> dict:
	"""
	Assemble the period document with PRs newest-first.
	"""
	document = {
		"user": user,
		"period_start": period.start_text,
		"period_end": period.end_text,
		"generated_at": generated_at or utc_now_iso(),
		"pull_requests": activity_records.sort_pull_requests(pull_requests),
		"commits": commits,
	}
	return document


#============================================
def count_commits(commits: dict[str, list[dict]]) -> int:
	return sum(len(repo_commits) for repo_commits in commits.values())


#============================================
def output_path(data_dir: str, period: activity_period.Period) -> str:
	return os.path.join(data_dir, activity_period.period_file_name(period))


#============================================
def write_output_document(data_dir: str, period: activity_period.Period, document: dict) -> str:
	"""
	Write the period document as indented JSON and return its path.
	"""
	path = output_path(data_dir, period)
	with open(path, "w", encoding="utf-8") as handle:
		json.dump(document, handle, indent=2)
	return path


#============================================
def index_path(data_dir: str) -> str:
	return os.path.join(data_dir, INDEX_FILE_NAME)


#============================================
def load_index(path: str) -> dict:
	"""
	Load index.json, or an empty index when the file is missing.
	"""
	if not os.path.exists(path):
		return {"periods": []}
	with open(path, "r", encoding="utf-8") as handle:
		index = json.load(handle)
	if not isinstance(index, dict):
		raise RuntimeError(f"Index file must contain a JSON object: {path}")
	if "periods" not in index:
		index["periods"] = []
	return index


#============================================
def build_index_entry(period: activity_period.Period, pr_count: int, commit_count: int) -> dict:
	entry = {
		"start": period.start_text,
		"end": period.end_text,
		"file": activity_period.period_file_name(period),
		"pr_count": pr_count,
		"commit_count": commit_count,
	}
	return entry


#============================================
def update_index(index: dict, entry: dict) -> dict:
	"""
	Replace any entry for the same (start, end), then sort by start descending.
	"""
	periods = [
		period for period in index.get("periods", [])
		if not (period.get("start") == entry["start"] and period.get("end") == entry["end"])
	]
	periods.append(entry)
	periods.sort(key=lambda period: period.get("start", ""), reverse=True)
	updated = dict(index)
	updated["periods"] = periods
	return updated


#============================================
def write_index(path: str, index: dict) -> None:
	with open(path, "w", encoding="utf-8") as handle:
		json.dump(index, handle, indent=2)
		handle.write("\n")
