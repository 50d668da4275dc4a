"""
Unit tests for the ScheduleService.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from collection_schedule.exceptions import DownloadError, ParsingError
from collection_schedule.services.schedule_service import ScheduleService

SAMPLE_DOCUMENT = {
    "collectionTypes": [{"id": "garbage", "name": {"en": "Garbage", "fr": "Ordures"}}],
    "zones": [{"id": "east", "name": {"en": "East"}}],
    "schedules": {"east": {"garbage": {"dayOfWeek": 4, "frequency": "weekly"}}},
}


def make_response(payload=None, json_error=None):
    response = MagicMock()
    response.status_code = 200
    response.raise_for_status.return_value = None
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@patch("collection_schedule.services.schedule_service.requests.get")
def test_download_schedule_success(mock_requests_get):
    mock_requests_get.return_value = make_response(SAMPLE_DOCUMENT)
    service = ScheduleService(api_url="https://api.test/{municipality_id}/schedule")

    schedule = service.download_schedule("saint-lazare")

    assert schedule.find_zone("east") is not None
    assert schedule.zone_schedule("east")["garbage"].day_of_week == 4
    mock_requests_get.assert_called_once_with("https://api.test/saint-lazare/schedule", timeout=service.timeout)


@patch("collection_schedule.services.schedule_service.requests.get")
def test_download_schedule_unwraps_schedule_key(mock_requests_get):
    mock_requests_get.return_value = make_response({"schedule": SAMPLE_DOCUMENT})
    schedule = ScheduleService().download_schedule("saint-lazare")
    assert [t.id for t in schedule.collection_types] == ["garbage"]


@patch("collection_schedule.services.schedule_service.time.sleep")
@patch("collection_schedule.services.schedule_service.requests.get")
def test_download_schedule_retries_then_fails(mock_requests_get, mock_sleep):
    mock_requests_get.side_effect = requests.exceptions.ConnectionError("unreachable")
    service = ScheduleService(max_retries=3, retry_delay=5)

    with pytest.raises(DownloadError):
        service.download_schedule("saint-lazare")

    assert mock_requests_get.call_count == 3
    assert mock_sleep.call_count == 2
    mock_sleep.assert_called_with(5)


@patch("collection_schedule.services.schedule_service.time.sleep")
@patch("collection_schedule.services.schedule_service.requests.get")
def test_download_schedule_recovers_after_a_failure(mock_requests_get, mock_sleep):
    mock_requests_get.side_effect = [
        requests.exceptions.Timeout("slow"),
        make_response(SAMPLE_DOCUMENT),
    ]
    schedule = ScheduleService(max_retries=3).download_schedule("saint-lazare")
    assert schedule.find_zone("east") is not None
    mock_sleep.assert_called_once()


@patch("collection_schedule.services.schedule_service.time.sleep")
@patch("collection_schedule.services.schedule_service.requests.get")
def test_http_error_status_is_a_download_error(mock_requests_get, mock_sleep):
    response = make_response(SAMPLE_DOCUMENT)
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Not Found")
    mock_requests_get.return_value = response

    with pytest.raises(DownloadError):
        ScheduleService(max_retries=1).download_schedule("nowhere")
    mock_sleep.assert_not_called()


@patch("collection_schedule.services.schedule_service.time.sleep")
@patch("collection_schedule.services.schedule_service.requests.get")
def test_invalid_json_is_a_parsing_error(mock_requests_get, mock_sleep):
    mock_requests_get.return_value = make_response(json_error=ValueError("Expecting value"))
    with pytest.raises(ParsingError):
        ScheduleService(max_retries=1).download_schedule("saint-lazare")


@patch("collection_schedule.services.schedule_service.time.sleep")
@patch("collection_schedule.services.schedule_service.requests.get")
def test_non_document_payload_is_a_parsing_error(mock_requests_get, mock_sleep):
    mock_requests_get.return_value = make_response(["not", "a", "document"])
    with pytest.raises(ParsingError):
        ScheduleService(max_retries=2).download_schedule("saint-lazare")
    assert mock_requests_get.call_count == 2
