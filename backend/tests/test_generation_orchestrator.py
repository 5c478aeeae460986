import asyncio

import pytest

from conftest import FakeCredits, FakeEstimator, FakeGateway, FakeMeshy, FakeResponse, FakeSession, RecordingSleep
from design_studio.core.errors import (
    CreditCheckError,
    GatewayError,
    InsufficientCreditsError,
    InvalidBriefError,
    MissingImageError,
    ModelServiceError,
    RateLimitedError,
)
from design_studio.models.design_models import (
    BatchState,
    DesignBrief,
    DesignCandidate,
    ModelJob,
    ModelJobState,
    ModelStatus,
)
from design_studio.services.generation_orchestrator import (
    STYLE_HINTS,
    DesignGenerationOrchestrator,
    build_variation_messages,
)
from design_studio.services.meshy_service import MeshyClient
from design_studio.services.model_cache import ModelAssetCache
from design_studio.services.pricing_service import ComplexityEstimator

BRIEF = DesignBrief(prompt="A curved oak lounge chair with brass legs")
IMAGE = "https://cdn.example.com/chair.png"
MODEL = "https://assets.meshy.ai/chair.glb"


def make_orchestrator(gateway=None, credits=None, meshy=None, sleep=None, isolate_failures=False):
    return DesignGenerationOrchestrator(
        gateway=gateway or FakeGateway(),
        credits=credits or FakeCredits(),
        estimator=FakeEstimator(),
        meshy=meshy,
        cache=ModelAssetCache(8),
        variation_count=3,
        credits_per_generation=1,
        isolate_failures=isolate_failures,
        poll_initial_delay=5,
        poll_interval=10,
        poll_max_attempts=60,
        sleep=sleep or RecordingSleep(),
    )


# ---------- image batch ----------

def test_batch_generates_three_styled_variations():
    gateway = FakeGateway()
    credits = FakeCredits(balance=4)
    batch = asyncio.run(make_orchestrator(gateway, credits).generate_batch("user-1", BRIEF))

    assert batch.state == BatchState.IMAGES_READY
    assert [c.variation_number for c in batch.candidates] == [1, 2, 3]
    assert [c.style_hint for c in batch.candidates] == STYLE_HINTS
    assert all(c.image_url for c in batch.candidates)
    assert len(gateway.image_calls) == 3
    assert batch.pricing.price_per_cubic_foot == 20000
    assert batch.credits_deducted
    assert batch.credits_balance == 3
    assert credits.deductions == [("user-1", 1)]


def test_credits_checked_before_and_deducted_after_images():
    events = []
    gateway, credits = FakeGateway(), FakeCredits()
    gateway.events = credits.events = events

    asyncio.run(make_orchestrator(gateway, credits).generate_batch("user-1", BRIEF))

    assert events[0] == "check"
    assert events[1:4] == ["image"] * 3
    assert events[-1] == "deduct"


def test_insufficient_credits_never_calls_gateway():
    gateway = FakeGateway()
    credits = FakeCredits(balance=0)

    with pytest.raises(InsufficientCreditsError) as exc:
        asyncio.run(make_orchestrator(gateway, credits).generate_batch("user-1", BRIEF))

    assert exc.value.balance == 0
    assert exc.value.credits_needed == 1
    assert gateway.image_calls == []
    assert credits.deductions == []


def test_credit_check_failure_fails_closed():
    gateway = FakeGateway()
    credits = FakeCredits(check_error=ConnectionError("db down"))

    with pytest.raises(CreditCheckError):
        asyncio.run(make_orchestrator(gateway, credits).generate_batch("user-1", BRIEF))
    assert gateway.image_calls == []


def test_deduction_failure_keeps_the_batch():
    credits = FakeCredits(balance=2, deduct_error=RuntimeError("write failed"))
    batch = asyncio.run(make_orchestrator(credits=credits).generate_batch("user-1", BRIEF))

    assert batch.state == BatchState.IMAGES_READY
    assert all(c.image_url for c in batch.candidates)
    assert not batch.credits_deducted
    assert batch.credits_balance == 2


def test_invalid_brief_is_rejected_before_credit_check():
    credits = FakeCredits()
    with pytest.raises(InvalidBriefError):
        asyncio.run(make_orchestrator(credits=credits).generate_batch("user-1", DesignBrief(prompt="chair")))
    assert credits.checks == []


def test_sketch_alone_is_a_valid_brief():
    brief = DesignBrief(sketch_image="data:image/png;base64,AAAA")
    batch = asyncio.run(make_orchestrator().generate_batch("user-1", brief))
    assert batch.state == BatchState.IMAGES_READY


def test_one_failed_variation_fails_the_batch():
    gateway = FakeGateway(fail_variations={STYLE_HINTS[1]: GatewayError("boom", status_code=500)})
    credits = FakeCredits()

    with pytest.raises(GatewayError):
        asyncio.run(make_orchestrator(gateway, credits).generate_batch("user-1", BRIEF))
    assert credits.deductions == []


def test_rate_limit_surfaces_as_rate_limited():
    gateway = FakeGateway(fail_variations={STYLE_HINTS[0]: RateLimitedError(status_code=429)})
    with pytest.raises(RateLimitedError):
        asyncio.run(make_orchestrator(gateway).generate_batch("user-1", BRIEF))


def test_isolated_failures_keep_the_good_variations():
    gateway = FakeGateway(fail_variations={STYLE_HINTS[2]: MissingImageError()})
    credits = FakeCredits()
    orchestrator = make_orchestrator(gateway, credits, isolate_failures=True)

    batch = asyncio.run(orchestrator.generate_batch("user-1", BRIEF))

    assert [c.succeeded for c in batch.candidates] == [True, True, False]
    assert batch.candidates[2].error == "No image generated"
    assert batch.credits_deducted


def test_isolated_failures_all_failing_still_raise():
    gateway = FakeGateway(fail_variations={hint: MissingImageError() for hint in STYLE_HINTS})
    with pytest.raises(MissingImageError):
        asyncio.run(make_orchestrator(gateway, isolate_failures=True).generate_batch("user-1", BRIEF))


def test_room_image_becomes_multimodal_message():
    brief = DesignBrief(prompt="A low bench for this hallway", room_image="https://x/room.jpg")
    messages = build_variation_messages(brief, STYLE_HINTS[0])
    content = messages[0]["content"]
    assert content[0]["type"] == "text"
    assert STYLE_HINTS[0] in content[0]["text"]
    assert content[1]["image_url"]["url"] == "https://x/room.jpg"


def test_text_brief_is_plain_message():
    messages = build_variation_messages(BRIEF, STYLE_HINTS[1])
    assert isinstance(messages[0]["content"], str)
    assert BRIEF.prompt in messages[0]["content"]


# ---------- 3D jobs ----------

def test_3d_job_polls_until_succeeded():
    meshy = FakeMeshy([ModelStatus("pending", 10), ModelStatus("pending", 60), ModelStatus("succeeded", 100, MODEL)])
    sleep = RecordingSleep()
    orchestrator = make_orchestrator(meshy=meshy, sleep=sleep)
    candidate = DesignCandidate(variation_number=1, style_hint="", image_url=IMAGE)

    job = asyncio.run(orchestrator.generate_3d(IMAGE, candidate=candidate))

    assert job.state == ModelJobState.SUCCEEDED
    assert job.model_url == MODEL
    assert job.attempts == 3
    assert sleep.delays == [5, 10, 10]
    assert candidate.model_url == MODEL
    assert candidate.task_id == "task-1"
    assert orchestrator.cache.get(IMAGE) == MODEL


def test_3d_failure_on_first_poll_stops_polling():
    meshy = FakeMeshy([ModelStatus("failed", 0, raw_status="FAILED")])
    job = asyncio.run(make_orchestrator(meshy=meshy).generate_3d(IMAGE))

    assert job.state == ModelJobState.FAILED
    assert job.attempts == 1
    assert meshy.fetches == 1


def test_3d_times_out_after_max_attempts():
    meshy = FakeMeshy([ModelStatus("pending", 50)])
    sleep = RecordingSleep()
    job = asyncio.run(make_orchestrator(meshy=meshy, sleep=sleep).generate_3d(IMAGE))

    assert job.state == ModelJobState.TIMED_OUT
    assert job.attempts == 60
    assert meshy.fetches == 60
    assert sleep.delays == [5] + [10] * 59


def test_3d_status_error_counts_as_attempt_and_continues():
    meshy = FakeMeshy([ModelServiceError("502"), ModelStatus("succeeded", 100, MODEL)])
    job = asyncio.run(make_orchestrator(meshy=meshy).generate_3d(IMAGE))

    assert job.state == ModelJobState.SUCCEEDED
    assert job.attempts == 2


def test_3d_succeeded_without_asset_is_failed():
    meshy = FakeMeshy([ModelStatus("succeeded", 100, None)])
    orchestrator = make_orchestrator(meshy=meshy)
    job = asyncio.run(orchestrator.generate_3d(IMAGE))

    assert job.state == ModelJobState.FAILED
    assert IMAGE not in orchestrator.cache


def test_cached_asset_skips_submission():
    meshy = FakeMeshy([ModelStatus("succeeded", 100, MODEL)])
    orchestrator = make_orchestrator(meshy=meshy)

    first = asyncio.run(orchestrator.generate_3d(IMAGE))
    second = asyncio.run(orchestrator.generate_3d(IMAGE))

    assert not first.from_cache
    assert second.from_cache
    assert second.state == ModelJobState.SUCCEEDED
    assert second.model_url == MODEL
    assert meshy.submitted == [IMAGE]


def test_submit_failure_is_a_failed_job():
    meshy = FakeMeshy(submit_error=ModelServiceError("400"))
    job = asyncio.run(make_orchestrator(meshy=meshy).generate_3d(IMAGE))

    assert job.state == ModelJobState.FAILED
    assert meshy.fetches == 0


def test_no_3d_service_is_a_failed_job():
    job = asyncio.run(make_orchestrator(meshy=None).generate_3d(IMAGE))
    assert job.state == ModelJobState.FAILED


def test_abort_before_first_poll():
    meshy = FakeMeshy()

    async def run():
        abort = asyncio.Event()
        abort.set()
        return await make_orchestrator(meshy=meshy).generate_3d(IMAGE, abort)

    job = asyncio.run(run())
    assert job.state == ModelJobState.CANCELLED
    assert meshy.fetches == 0


def test_abort_while_polling():
    meshy = FakeMeshy([ModelStatus("pending", 20)])

    async def run():
        abort = asyncio.Event()
        sleep = RecordingSleep(on_call=lambda n: abort.set() if n == 3 else None)
        return await make_orchestrator(meshy=meshy, sleep=sleep).generate_3d(IMAGE, abort)

    job = asyncio.run(run())
    assert job.state == ModelJobState.CANCELLED
    assert job.attempts == 2


def test_task_cancellation_marks_job_cancelled():
    meshy = FakeMeshy([ModelStatus("pending", 20)])

    async def forever(delay):
        await asyncio.Event().wait()

    async def run():
        orchestrator = make_orchestrator(meshy=meshy, sleep=forever)
        job = await orchestrator.submit_3d(IMAGE)
        task = asyncio.ensure_future(orchestrator.poll_3d(job))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return job

    job = asyncio.run(run())
    assert job.state == ModelJobState.CANCELLED


def test_poll_requires_a_submitted_job():
    orchestrator = make_orchestrator(meshy=FakeMeshy())
    with pytest.raises(ValueError):
        asyncio.run(orchestrator.poll_3d(ModelJob(source_image_url=IMAGE)))


# ---------- unexpected failures ----------

class StateRecordingOrchestrator(DesignGenerationOrchestrator):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.states = []

    def _transition(self, batch, state):
        self.states.append(state)
        batch.state = state


class ExplodingEstimator:

    def estimate(self, description):
        raise RuntimeError("estimator bug")


def test_oversized_ai_price_still_completes_the_batch():
    reply = '{"complexity": "high", "pricePerCubicFoot": 1' + "0" * 400 + ', "reasoning": "x"}'
    gateway = FakeGateway(text=reply)
    credits = FakeCredits()
    orchestrator = DesignGenerationOrchestrator(
        gateway=gateway, credits=credits, estimator=ComplexityEstimator(gateway),
        cache=ModelAssetCache(4), variation_count=3, credits_per_generation=1, isolate_failures=False,
    )

    batch = asyncio.run(orchestrator.generate_batch("user-1", BRIEF))

    assert batch.state == BatchState.IMAGES_READY
    assert batch.pricing.is_fallback
    assert batch.pricing.price_per_cubic_foot == 12000
    assert credits.deductions == [("user-1", 1)]


def test_estimator_crash_falls_back_to_default_pricing():
    credits = FakeCredits()
    orchestrator = DesignGenerationOrchestrator(
        gateway=FakeGateway(), credits=credits, estimator=ExplodingEstimator(),
        cache=ModelAssetCache(4), variation_count=3, credits_per_generation=1, isolate_failures=False,
    )

    batch = asyncio.run(orchestrator.generate_batch("user-1", BRIEF))

    assert batch.pricing.is_fallback
    assert batch.credits_deducted


@pytest.mark.parametrize("isolate", [False, True])
def test_unexpected_variation_error_marks_batch_failed(isolate):
    gateway = FakeGateway(fail_variations={STYLE_HINTS[0]: RuntimeError("decoder bug")})
    credits = FakeCredits()
    orchestrator = StateRecordingOrchestrator(
        gateway=gateway, credits=credits, estimator=FakeEstimator(),
        cache=ModelAssetCache(4), variation_count=3, credits_per_generation=1, isolate_failures=isolate,
    )

    with pytest.raises(RuntimeError):
        asyncio.run(orchestrator.generate_batch("user-1", BRIEF))

    assert orchestrator.states[-1] == BatchState.FAILED
    assert credits.deductions == []


def test_unexpected_poll_error_fails_the_job():
    meshy = FakeMeshy([AttributeError("'list' object has no attribute 'get'")])
    orchestrator = make_orchestrator(meshy=meshy)

    async def run():
        job = await orchestrator.submit_3d(IMAGE)
        with pytest.raises(AttributeError):
            await orchestrator.poll_3d(job)
        return job

    job = asyncio.run(run())
    assert job.state == ModelJobState.FAILED
    assert job.error


def test_list_shaped_status_body_reaches_a_terminal_state():
    session = FakeSession(FakeResponse(200, ["unexpected", "list"]))
    meshy = MeshyClient(api_base="https://meshy/v1", api_key="key", session=session)
    job = ModelJob(source_image_url=IMAGE, task_id="task-1", state=ModelJobState.POLLING)

    asyncio.run(make_orchestrator(meshy=meshy).poll_3d(job))

    assert job.state == ModelJobState.TIMED_OUT
    assert job.attempts == 60
