import asyncio
import io

import pytest
from PIL import Image

from design_studio.core.storage import encode_data_url
from design_studio.models.design_models import Complexity, ModelStatus, PricingResult
from design_studio.services.credit_service import CreditCheck


class FakeGateway:
    """Stands in for AIGatewayClient."""

    def __init__(self, text=None, error=None, fail_variations=None):
        self.text = text
        self.error = error
        self.fail_variations = fail_variations or {}
        self.image_calls = []
        self.text_calls = []
        self.events = None

    def generate_image(self, messages):
        self.image_calls.append(messages)
        if self.events is not None:
            self.events.append("image")
        content = messages[0]["content"]
        text = content if isinstance(content, str) else content[0]["text"]
        for hint, error in self.fail_variations.items():
            if hint in text:
                raise error
        return f"data:image/png;base64,variation{len(self.image_calls)}"

    def complete_text(self, messages, response_format=None, temperature=None):
        self.text_calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.text


class FakeCredits:
    """Stands in for CreditLedger."""

    def __init__(self, balance=5, check_error=None, deduct_error=None):
        self.balance = balance
        self.check_error = check_error
        self.deduct_error = deduct_error
        self.checks = []
        self.deductions = []
        self.events = None

    def check(self, user_id, credits_needed=1):
        self.checks.append(user_id)
        if self.events is not None:
            self.events.append("check")
        if self.check_error is not None:
            raise self.check_error
        return CreditCheck(self.balance >= credits_needed, self.balance, credits_needed)

    def deduct(self, user_id, credits_needed=1):
        if self.events is not None:
            self.events.append("deduct")
        if self.deduct_error is not None:
            raise self.deduct_error
        self.deductions.append((user_id, credits_needed))
        self.balance -= credits_needed
        return self.balance


class FakeEstimator:

    def __init__(self):
        self.descriptions = []

    def estimate(self, description):
        self.descriptions.append(description)
        return PricingResult(Complexity.HIGH, 20000, "Sculptural form")


class FakeMeshy:
    """Replays a script of statuses; the last one repeats."""

    def __init__(self, statuses=None, submit_error=None, task_id="task-1"):
        self.statuses = list(statuses or [ModelStatus("pending")])
        self.submit_error = submit_error
        self.task_id = task_id
        self.submitted = []
        self.fetches = 0

    def submit(self, image_url, enable_pbr=True):
        self.submitted.append(image_url)
        if self.submit_error is not None:
            raise self.submit_error
        return self.task_id

    def fetch_status(self, task_id):
        self.fetches += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        return status


class RecordingSleep:

    def __init__(self, on_call=None):
        self.delays = []
        self.on_call = on_call

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.on_call is not None:
            self.on_call(len(self.delays))
        await asyncio.sleep(0)


class FakeDB:
    """In-memory DatabaseManager."""

    def __init__(self, record=None):
        self.record = record
        self.created = []
        self.updates = []
        self.transactions = []
        self.usage = []
        self.submissions = []

    def get_credit_record(self, user_id):
        return self.record

    def create_credit_record(self, user_id, balance, reset_at):
        self.created.append((user_id, balance, reset_at))
        self.record = {"balance": balance, "free_credits_reset_at": reset_at.isoformat()}
        return self.record

    def update_credit_balance(self, user_id, balance, reset_at=None):
        self.updates.append((user_id, balance, reset_at))
        self.record["balance"] = balance
        if reset_at:
            self.record["free_credits_reset_at"] = reset_at.isoformat()

    def log_credit_transaction(self, user_id, amount, type, description):
        self.transactions.append((user_id, amount, type))

    def log_usage(self, user_id, action_type):
        self.usage.append((user_id, action_type))

    def save_submission(self, data):
        self.submissions.append(data)
        return f"sub-{len(self.submissions)}"

    def get_submission(self, submission_id):
        for n, row in enumerate(self.submissions, start=1):
            if f"sub-{n}" == submission_id:
                return {**row, "id": submission_id}
        return None


@pytest.fixture
def product_image_url():
    """Red block on the white studio background, as a PNG data URL."""
    image = Image.new("RGB", (20, 20), (255, 255, 255))
    for x in range(5, 15):
        for y in range(5, 15):
            image.putpixel((x, y), (200, 40, 40))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return encode_data_url(buffer.getvalue(), "image/png")


class FakeResponse:

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    """Stands in for requests.Session; every call gets the same response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response
