import os

import yaml


DEFAULT_SETTINGS_PATH = "settings.yaml"
SETTINGS_ENV_VAR = "GH_ACTIVITY_SETTINGS"


#============================================
def get_repo_root() -> str:
	"""
	Return project root for a source checkout, else the working directory.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	pipeline_dir = os.path.dirname(module_dir)
	if os.path.basename(pipeline_dir) != "pipeline":
		# installed into site-packages
		return os.getcwd()
	repo_root = os.path.dirname(pipeline_dir)
	return repo_root


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_root = get_repo_root()
	repo_candidate = os.path.join(repo_root, path_text)
	return os.path.abspath(repo_candidate)


#============================================
def default_settings_path() -> str:
	"""
	Settings path from the environment, or settings.yaml.
	"""
	value = (os.environ.get(SETTINGS_ENV_VAR, "") or "").strip()
	return value or DEFAULT_SETTINGS_PATH


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle.read())
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read a positive integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		number = int(value)
	except (TypeError, ValueError) as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error
	if number < 1:
		raise RuntimeError(f"Setting path {'.'.join(keys)} must be >= 1: {value}")
	return number


#============================================
def get_setting_float(settings: dict, keys: list[str], default_value: float) -> float:
	"""
	Read a float setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		number = float(value)
	except (TypeError, ValueError) as error:
		raise RuntimeError(f"Invalid number for setting path {'.'.join(keys)}: {value}") from error
	if number < 0:
		raise RuntimeError(f"Setting path {'.'.join(keys)} must be >= 0: {value}")
	return number


#============================================
def get_gh_binary(settings: dict) -> str:
	"""
	Resolve the gh executable name or path.
	"""
	value = get_setting_str(settings, ["github", "gh_binary"], "gh")
	return value or "gh"


#============================================
def resolve_data_dir(settings: dict) -> str:
	"""
	Resolve output directory; relative paths hang off the repo root.
	"""
	value = get_setting_str(settings, ["fetch", "data_dir"], "data") or "data"
	value = os.path.expanduser(value)
	if os.path.isabs(value):
		return value
	return os.path.abspath(os.path.join(get_repo_root(), value))
