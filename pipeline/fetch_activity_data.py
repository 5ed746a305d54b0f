#!/usr/bin/env python3
import argparse
import os
import sys
import tempfile
from datetime import date
from datetime import datetime

import rich.console

from actlib import activity_period
from actlib import activity_records
from actlib import activity_store
from actlib import gh_cli
from actlib import pipeline_settings


DEFAULT_REQUEST_DELAY_SECONDS = 0.5
DEFAULT_IDENTITY_TIMEOUT_SECONDS = 30
DEFAULT_SEARCH_TIMEOUT_SECONDS = 120
DEFAULT_DETAIL_TIMEOUT_SECONDS = 30
DEFAULT_COMMITS_TIMEOUT_SECONDS = 60
DEFAULT_PER_PAGE = 100
RICH_CONSOLE = rich.console.Console()


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[fetch_activity_data {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("warning" in lower) or ("failed" in lower) or ("error" in lower):
		style = "bold red"
	elif ("timeout" in lower) or ("skipping" in lower):
		style = "yellow"
	elif ("wrote " in lower) or ("found " in lower) or ("updated " in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, highlight=False, markup=False)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description=(
			"Fetch your GitHub pull requests and commits for a period and "
			+ "write them to the data directory."
		),
	)
	parser.add_argument(
		"start_date",
		nargs="?",
		default=None,
		help="Period start (YYYY-MM-DD). Defaults to the last two full weeks.",
	)
	parser.add_argument(
		"end_date",
		nargs="?",
		default=None,
		help="Period end (YYYY-MM-DD, inclusive).",
	)
	args = parser.parse_args(argv)
	if (args.start_date is None) != (args.end_date is None):
		parser.error("START_DATE and END_DATE must be given together")
	if args.start_date is not None:
		try:
			activity_period.parse_period(args.start_date, args.end_date)
		except ValueError as error:
			parser.error(str(error))
	return args


#============================================
def fetch_search_payload(
	client: gh_cli.GhCliClient,
	query_terms: list[str],
	per_page: int,
	timeout: float,
	label: str,
):
	"""
	Run one search query; failures degrade to an empty result.
	"""
	try:
		return client.search_issues(query_terms, per_page, timeout)
	except gh_cli.GhTimeoutError:
		log_step(f"Warning: Timeout searching {label} PRs; using empty result.")
	except gh_cli.GhResponseError:
		log_step(f"Warning: Invalid JSON searching {label} PRs; using empty result.")
	except gh_cli.GhCommandError as error:
		log_step(f"Warning: Failed to search {label} PRs: {error.stderr or error}")
	return []


#============================================
def collect_pull_request_summaries(
	client: gh_cli.GhCliClient,
	user: str,
	period: activity_period.Period,
	scratch_dir: str,
	per_page: int = DEFAULT_PER_PAGE,
	timeout: float = DEFAULT_SEARCH_TIMEOUT_SECONDS,
) -> list[dict]:
	"""
	Search created and merged PRs, stage raw payloads, and dedupe by URL.
	"""
	date_range = f"{period.start_text}..{period.end_text}"
	staged = {}
	for label in ("created", "merged"):
		log_step(f"Fetching PRs {label} in date range...")
		query_terms = ["type:pr", f"author:{user}", f"{label}:{date_range}"]
		payload = fetch_search_payload(client, query_terms, per_page, timeout, label)
		raw_path = os.path.join(scratch_dir, f"{label}.json")
		activity_records.write_raw_payload(raw_path, payload)
		staged[label] = activity_records.load_raw_payload(raw_path)
	summaries = activity_records.dedupe_by_url(staged["created"], staged["merged"])
	log_step(f"Found {len(summaries)} unique PRs")
	return summaries


#============================================
def fetch_pull_request_details(
	client: gh_cli.GhCliClient,
	summaries: list[dict],
	timeout: float = DEFAULT_DETAIL_TIMEOUT_SECONDS,
) -> tuple[list[dict], set[str]]:
	"""
	Resolve each summary into a detail record and collect base repos.
	"""
	details = []
	repos = set()
	total = len(summaries)
	for index, summary in enumerate(summaries):
		html_url = summary.get("html_url", "")
		api_path = activity_records.pull_request_api_path(summary)
		if api_path is None:
			continue
		log_step(f"  Fetching PR details [{index + 1}/{total}]: {html_url}")
		try:
			detail = client.get_pull_request(api_path, timeout)
		except gh_cli.GhTimeoutError:
			log_step(f"    Warning: Timeout fetching {api_path}")
		except gh_cli.GhResponseError:
			log_step(f"    Warning: Invalid JSON from {api_path}")
		except gh_cli.GhCommandError as error:
			log_step(f"    Warning: Failed to fetch {api_path}: {error.stderr}")
		else:
			repo_full_name = activity_records.base_repo(detail).get("full_name", "")
			if repo_full_name:
				repos.add(repo_full_name)
			details.append(activity_records.build_pull_request_detail(detail))
		if index < total - 1:
			client.sleep_between_requests()
	return details, repos


#============================================
def fetch_repo_commits(
	client: gh_cli.GhCliClient,
	user: str,
	period: activity_period.Period,
	repos: set[str],
	per_page: int = DEFAULT_PER_PAGE,
	timeout: float = DEFAULT_COMMITS_TIMEOUT_SECONDS,
) -> dict[str, list[dict]]:
	"""
	Fetch the user's commits in each repo; failed repos are skipped.
	"""
	log_step(f"Fetching commits from {len(repos)} repos...")
	since = f"{period.start_text}T00:00:00Z"
	until = f"{period.end_text}T23:59:59Z"
	commits = {}
	for repo_name in sorted(repos):
		log_step(f"  Fetching commits from {repo_name}...")
		try:
			payload = client.list_commits(repo_name, user, since, until, per_page, timeout)
		except gh_cli.GhTimeoutError:
			log_step(f"    Warning: Timeout fetching commits from {repo_name}")
		except gh_cli.GhResponseError:
			log_step(f"    Warning: Invalid JSON from commits of {repo_name}")
		except gh_cli.GhCommandError as error:
			log_step(f"    Warning: Failed to fetch commits from {repo_name}: {error.stderr}")
		else:
			raw_commits = activity_records.normalize_commit_pages(payload)
			repo_commits = [activity_records.build_commit_record(commit) for commit in raw_commits]
			if repo_commits:
				commits[repo_name] = activity_records.sort_commits(repo_commits)
				log_step(f"    Found {len(repo_commits)} commits")
		client.sleep_between_requests()
	return commits


#============================================
def run_fetch(
	client: gh_cli.GhCliClient,
	user: str,
	period: activity_period.Period,
	data_dir: str,
	settings: dict | None = None,
) -> tuple[str, dict]:
	"""
	Run the search, detail, and commit stages and write both output files.
	"""
	settings = settings or {}
	per_page = pipeline_settings.get_setting_int(settings, ["fetch", "per_page"], DEFAULT_PER_PAGE)
	search_timeout = pipeline_settings.get_setting_float(
		settings, ["fetch", "search_timeout_seconds"], DEFAULT_SEARCH_TIMEOUT_SECONDS
	)
	detail_timeout = pipeline_settings.get_setting_float(
		settings, ["fetch", "detail_timeout_seconds"], DEFAULT_DETAIL_TIMEOUT_SECONDS
	)
	commits_timeout = pipeline_settings.get_setting_float(
		settings, ["fetch", "commits_timeout_seconds"], DEFAULT_COMMITS_TIMEOUT_SECONDS
	)

	with tempfile.TemporaryDirectory(prefix="gh_activity_") as scratch_dir:
		summaries = collect_pull_request_summaries(
			client, user, period, scratch_dir, per_page=per_page, timeout=search_timeout
		)
	log_step("Deduplicated PRs; fetching details...")
	details, repos = fetch_pull_request_details(client, summaries, timeout=detail_timeout)
	commits = fetch_repo_commits(
		client, user, period, repos, per_page=per_page, timeout=commits_timeout
	)

	document = activity_store.build_output_document(user, period, details, commits)
	output_path = activity_store.write_output_document(data_dir, period, document)
	total_commits = activity_store.count_commits(commits)
	log_step(f"Wrote {output_path}")
	log_step(f"  PRs: {len(document['pull_requests'])}")
	log_step(f"  Repos with commits: {len(commits)}")
	log_step(f"  Total commits: {total_commits}")

	index_path = activity_store.index_path(data_dir)
	entry = activity_store.build_index_entry(period, len(details), total_commits)
	index = activity_store.update_index(activity_store.load_index(index_path), entry)
	activity_store.write_index(index_path, index)
	log_step(f"Updated {index_path}")
	return output_path, document


#============================================
def build_client(settings: dict) -> gh_cli.GhCliClient:
	delay = pipeline_settings.get_setting_float(
		settings, ["fetch", "request_delay_seconds"], DEFAULT_REQUEST_DELAY_SECONDS
	)
	return gh_cli.GhCliClient(
		gh_binary=pipeline_settings.get_gh_binary(settings),
		request_delay_seconds=delay,
		log_fn=log_step,
	)


#============================================
def main(argv: list[str] | None = None, today: date | None = None) -> int:
	"""
	Fetch one period of GitHub activity and update the index.
	"""
	args = parse_args(argv)
	settings, settings_path = pipeline_settings.load_settings(
		pipeline_settings.default_settings_path()
	)
	log_step(f"Using settings file: {settings_path}")
	period = activity_period.resolve_period(
		args.start_date,
		args.end_date,
		today or date.today(),
	)
	log_step(f"Fetching data for period: {period.start_text} to {period.end_text}")

	data_dir = pipeline_settings.resolve_data_dir(settings)
	try:
		os.makedirs(data_dir, exist_ok=True)
	except OSError as error:
		log_step(f"Error: cannot create data directory {data_dir}: {error}")
		return 1

	client = build_client(settings)
	identity_timeout = pipeline_settings.get_setting_float(
		settings, ["fetch", "identity_timeout_seconds"], DEFAULT_IDENTITY_TIMEOUT_SECONDS
	)
	log_step("Getting GitHub username...")
	try:
		user = client.get_login(timeout=identity_timeout)
	except gh_cli.GhCommandError as error:
		log_step(f"Error: cannot resolve GitHub user: {error}")
		return 1
	log_step(f"User: {user}")

	try:
		run_fetch(client, user, period, data_dir, settings)
	except activity_records.PayloadShapeError as error:
		log_step(f"Error: unexpected gh api payload: {error}")
		return 1
	except RuntimeError as error:
		log_step(f"Error: {error}")
		return 1
	usage = client.api_usage_snapshot()
	log_step(f"GitHub API usage: calls={usage.get('api_call_count', 0)}")
	log_step("Done!")
	return 0


if __name__ == "__main__":
	sys.exit(main())
