import pytest
import attendance_reconciler.webapp.api as apimod
from attendance_reconciler import pipeline


@pytest.fixture(autouse=True)
def api_data_folder(monkeypatch, sample_folder, fixed_now):
	# Point the API at a freshly reconciled sample folder for all tests under tests/webapp/
	pipeline.run(sample_folder, fixed_now, timezone_name="UTC")
	monkeypatch.setattr(apimod, "DATA_FOLDER", str(sample_folder))
	return sample_folder
