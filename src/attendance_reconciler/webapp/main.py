from fastapi import FastAPI
from attendance_reconciler import __version__
from attendance_reconciler.webapp.api import api

app = FastAPI(title="Attendance Reconciler API", version=__version__)
app.include_router(api)
