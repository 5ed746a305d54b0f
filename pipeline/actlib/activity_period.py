from dataclasses import dataclass
from datetime import date
from datetime import timedelta


WINDOW_DAYS = 14


#============================================
@dataclass(frozen=True)
class Period:
	"""
	Inclusive calendar-date range for one fetch run.
	"""

	start_date: date
	end_date: date

	@property
	def start_text(self) -> str:
		return self.start_date.isoformat()

	@property
	def end_text(self) -> str:
		return self.end_date.isoformat()


#============================================
def default_period(today: date) -> Period:
	"""
	Last two completed Monday-Sunday weeks before today.

	On a Sunday the window ends on the previous Sunday, not today.
	"""
	days_since_sunday = today.isoweekday() % 7
	if days_since_sunday == 0:
		days_since_sunday = 7
	end_date = today - timedelta(days=days_since_sunday)
	start_date = end_date - timedelta(days=WINDOW_DAYS - 1)
	return Period(start_date, end_date)


#============================================
def parse_date(text: str) -> date:
	"""
	Parse one YYYY-MM-DD calendar date.
	"""
	value = (text or "").strip()
	try:
		return date.fromisoformat(value)
	except ValueError as error:
		raise ValueError(f"Invalid date (expected YYYY-MM-DD): {text!r}") from error


#============================================
def parse_period(start_text: str, end_text: str) -> Period:
	"""
	Parse an explicit start/end pair.
	"""
	start_date = parse_date(start_text)
	end_date = parse_date(end_text)
	if start_date > end_date:
		raise ValueError(f"Start date {start_date} is after end date {end_date}")
	return Period(start_date, end_date)


#============================================
def resolve_period(start_text: str | None, end_text: str | None, today: date) -> Period:
	"""
	Explicit period when both dates are given, else the default window.
	"""
	if start_text and end_text:
		return parse_period(start_text, end_text)
	return default_period(today)


#============================================
def period_file_name(period: Period) -> str:
	return f"{period.start_text}_to_{period.end_text}.json"
