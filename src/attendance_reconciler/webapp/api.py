import datetime
from zoneinfo import ZoneInfo
from fastapi import APIRouter, HTTPException
from attendance_reconciler import __version__, constants
from attendance_reconciler import file_io
from attendance_reconciler import pipeline
from attendance_reconciler.data_manager import DataManager
from attendance_reconciler.errors import MissingSource

DATA_FOLDER = constants.DEFAULT_DATA_PATH

api = APIRouter(prefix="/api", tags=["api"])


def current_time(timezone):
	return datetime.datetime.now(ZoneInfo(timezone))


@api.get("/health")
def health():
	return {"status": "ok"}


@api.get("/version")
def version():
	return {"version": __version__}


@api.get("/summaries")
def api_get_summaries(timezone: str = constants.DEFAULT_TIMEZONE):
	try:
		summaries = file_io.load_stats_summaries(DataManager(DATA_FOLDER).stats_path)
	except MissingSource as e:
		raise HTTPException(status_code=404, detail=str(e))
	return {"summaries": [s.to_dict(timezone) for s in summaries]}


@api.get("/roster")
def api_get_roster(timezone: str = constants.DEFAULT_TIMEZONE):
	now = current_time(timezone)
	try:
		entries = pipeline.roster_for(DATA_FOLDER, now, timezone_name=timezone)
	except MissingSource as e:
		raise HTTPException(status_code=404, detail=str(e))
	return {
		"roster": [
			{"id": e.identity_id, "full_name": e.full_name, "first_name": e.first_name, "last_name": e.last_name}
			for e in entries
		]
	}
