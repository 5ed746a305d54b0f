import json
import subprocess
import time


API_URL_PREFIX = "https://api.github.com/"


#============================================
class GhCommandError(RuntimeError):
	"""
	Raised when one gh api call exits non-zero.
	"""

	def __init__(self, message: str, command: list[str], returncode=None, stderr: str = ""):
		super().__init__(message)
		self.command = list(command)
		self.returncode = returncode
		self.stderr = stderr


#============================================
class GhTimeoutError(GhCommandError):
	"""
	Raised when one gh api call exceeds its timeout.
	"""


#============================================
class GhResponseError(GhCommandError):
	"""
	Raised when gh api output is not valid JSON.
	"""


#============================================
class GhCliClient:
	"""
	Thin wrapper around `gh api` for the activity fetch pipeline.

	Authentication and pagination are left to gh itself. Every call is
	bounded by an explicit timeout; there are no retries.
	"""

	def __init__(
		self,
		gh_binary: str = "gh",
		request_delay_seconds: float = 0.5,
		log_fn=None,
		runner=None,
		sleep_fn=None,
	):
		self.gh_binary = gh_binary
		self.request_delay_seconds = float(request_delay_seconds)
		self.log_fn = log_fn
		self._runner = runner or subprocess.run
		self._sleep_fn = sleep_fn or time.sleep
		self._api_call_count = 0
		self._api_calls_by_context: dict[str, int] = {}

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def record_api_call(self, context: str) -> None:
		"""
		Track one outbound gh api call.
		"""
		self._api_call_count += 1
		if context not in self._api_calls_by_context:
			self._api_calls_by_context[context] = 0
		self._api_calls_by_context[context] += 1

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API call counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"api_calls_by_context": dict(self._api_calls_by_context),
		}

	#============================================
	def sleep_between_requests(self) -> None:
		"""
		Fixed pacing delay between successive calls.
		"""
		if self.request_delay_seconds > 0:
			self._sleep_fn(self.request_delay_seconds)

	#============================================
	def build_command(self, endpoint: str, paginate: bool = False) -> list[str]:
		"""
		Build the gh api argument vector for one endpoint.
		"""
		command = [self.gh_binary, "api"]
		if paginate:
			command.extend(["--paginate", "--slurp"])
		command.append(endpoint)
		return command

	#============================================
	def run_api(self, endpoint: str, timeout: float, context: str, paginate: bool = False) -> str:
		"""
		Run one gh api call and return its stdout text.
		"""
		command = self.build_command(endpoint, paginate=paginate)
		self.record_api_call(context)
		try:
			result = self._runner(
				command,
				capture_output=True,
				text=True,
				timeout=timeout,
			)
		except subprocess.TimeoutExpired as error:
			raise GhTimeoutError(
				f"Timeout after {timeout}s calling {endpoint}",
				command,
			) from error
		if result.returncode != 0:
			stderr_text = (result.stderr or "").strip()
			raise GhCommandError(
				f"gh api {endpoint} failed (exit={result.returncode}): {stderr_text}",
				command,
				returncode=result.returncode,
				stderr=stderr_text,
			)
		return result.stdout or ""

	#============================================
	def get_json(self, endpoint: str, timeout: float, context: str, paginate: bool = False):
		"""
		Run one gh api call and decode its JSON output.
		"""
		stdout_text = self.run_api(endpoint, timeout, context, paginate=paginate)
		try:
			return json.loads(stdout_text)
		except json.JSONDecodeError as error:
			raise GhResponseError(
				f"Invalid JSON from {endpoint}: {error}",
				self.build_command(endpoint, paginate=paginate),
			) from error

	#============================================
	def get_login(self, timeout: float = 30) -> str:
		"""
		Resolve the authenticated user's login handle.
		"""
		payload = self.get_json("user", timeout, "GET /user")
		login = ""
		if isinstance(payload, dict):
			login = str(payload.get("login") or "").strip()
		if not login:
			raise GhCommandError("gh api user returned no login", self.build_command("user"))
		return login

	#============================================
	def search_issues(self, query_terms: list[str], per_page: int, timeout: float):
		"""
		Run one paginated issue search and return the raw slurped payload.
		"""
		query = "+".join(query_terms)
		endpoint = f"search/issues?q={query}&per_page={per_page}"
		return self.get_json(endpoint, timeout, "GET /search/issues", paginate=True)

	#============================================
	def get_pull_request(self, api_path: str, timeout: float):
		"""
		Fetch one pull request detail payload.
		"""
		payload = self.get_json(api_path, timeout, "GET /repos/{owner}/{repo}/pulls/{number}")
		if not isinstance(payload, dict):
			raise GhResponseError(
				f"Expected a JSON object from {api_path}, got {type(payload).__name__}",
				self.build_command(api_path),
			)
		return payload

	#============================================
	def list_commits(
		self,
		repo_full_name: str,
		author: str,
		since: str,
		until: str,
		per_page: int,
		timeout: float,
	):
		"""
		List commits by one author inside a time window.
		"""
		endpoint = (
			f"repos/{repo_full_name}/commits?author={author}"
			+ f"&since={since}&until={until}&per_page={per_page}"
		)
		return self.get_json(
			endpoint,
			timeout,
			f"GET /repos/{repo_full_name}/commits",
			paginate=True,
		)
