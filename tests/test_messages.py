"""
Tests for wire message encoding and decoding
"""

import json

import pytest

from comfyui_client.errors import MessageDecodeError
from comfyui_client.models import ImageJobParameters, MessageEnvelope, OnChainDaoState
from comfyui_client.models.messages import (
    AdminResponse,
    GetRollupState,
    JobParameters,
    JobQueued,
    JobUpdate,
    JobUpdateAck,
    PaymentRequired,
    RunError,
    SetRollupSequencer,
    SetRouterProcess,
    decode_admin_request,
    decode_admin_response,
    decode_public_request,
    decode_public_response,
    decode_sequencer_response,
    encode_admin_request,
    encode_public_request,
    encode_public_response,
    encode_sequencer_read,
    is_admin_request,
)

from conftest import CHAIN_STATE


class TestPublicRequests:

    def test_run_job_wire_shape(self):
        params = JobParameters(workflow="basic", parameters='{"positive_prompt": "a cat"}')
        assert encode_public_request(params) == {
            "RunJob": {"workflow": "basic", "parameters": '{"positive_prompt": "a cat"}'}
        }

    def test_run_job_parameters_stay_opaque(self):
        body = {"RunJob": {"workflow": "basic", "parameters": "not even json"}}
        request = decode_public_request(body)
        assert isinstance(request, JobParameters)
        assert request.parameters == "not even json"

    def test_job_update_with_ok_signature(self):
        body = {"JobUpdate": {"job_id": 42, "is_final": False, "signature": {"Ok": 7}}}
        update = decode_public_request(body)
        assert isinstance(update, JobUpdate)
        assert update.job_id == 42
        assert update.signature.is_ok
        assert update.signature.ok == 7
        assert encode_public_request(update) == body

    def test_job_update_with_err_signature(self):
        body = {"JobUpdate": {"job_id": 1, "is_final": True, "signature": {"Err": "bad key"}}}
        update = decode_public_request(body)
        assert not update.signature.is_ok
        assert update.signature.err == "bad key"

    @pytest.mark.parametrize("body", [
        "RunJob",
        {"Unknown": {}},
        {"RunJob": {"workflow": "basic"}},
        {"JobUpdate": {"job_id": -1, "is_final": False, "signature": {"Ok": 1}}},
        {"JobUpdate": {"job_id": 1, "is_final": False, "signature": {"Ok": 1, "Err": "x"}}},
        {"RunJob": {}, "JobUpdate": {}},
        42,
        None,
    ])
    def test_rejects_malformed_requests(self, body):
        with pytest.raises(MessageDecodeError):
            decode_public_request(body)


class TestPublicResponses:

    @pytest.mark.parametrize("response, wire", [
        (JobQueued(job_id=42), {"RunJob": {"JobQueued": {"job_id": 42}}}),
        (PaymentRequired(), {"RunJob": "PaymentRequired"}),
        (RunError(message="no providers"), {"RunJob": {"Error": "no providers"}}),
        (JobUpdateAck(), "JobUpdate"),
    ])
    def test_wire_shapes(self, response, wire):
        assert encode_public_response(response) == wire
        assert decode_public_response(wire) == response

    @pytest.mark.parametrize("body", [
        {"RunJob": "JobQueued"},
        {"RunJob": {"PaymentRequired": {}}},
        {"RunJob": {"Error": 5}},
        {"JobUpdate": {}},
        "RunJob",
        {"Other": "x"},
    ])
    def test_rejects_unknown_variants(self, body):
        with pytest.raises(MessageDecodeError):
            decode_public_response(body)


class TestAdminMessages:

    def test_admin_tags_are_recognized(self):
        assert is_admin_request({"SetRouterProcess": {"process_id": "a:b:c"}})
        assert is_admin_request({"SetRollupSequencer": {"address": "n@a:b:c"}})
        assert is_admin_request("GetRollupState")
        assert not is_admin_request({"RunJob": {"workflow": "w", "parameters": "{}"}})
        assert not is_admin_request({"a": 1, "b": 2})

    @pytest.mark.parametrize("request_, wire", [
        (SetRouterProcess(process_id="router:pkg:pub.os"), {"SetRouterProcess": {"process_id": "router:pkg:pub.os"}}),
        (SetRollupSequencer(address="seq.os@s:pkg:pub.os"), {"SetRollupSequencer": {"address": "seq.os@s:pkg:pub.os"}}),
        (GetRollupState(), "GetRollupState"),
    ])
    def test_request_wire_shapes(self, request_, wire):
        assert encode_admin_request(request_) == wire
        assert decode_admin_request(wire) == request_

    def test_response_wire_shape(self):
        assert AdminResponse(kind="SetRouterProcess").to_wire() == {"SetRouterProcess": {"err": None}}
        response = decode_admin_response({"GetRollupState": {"err": "no rollup sequencer set"}})
        assert response.kind == "GetRollupState"
        assert response.err == "no rollup sequencer set"

    def test_rejects_unit_set_router_process(self):
        with pytest.raises(MessageDecodeError):
            decode_admin_request("SetRouterProcess")


class TestSequencerMessages:

    def test_read_all_request(self):
        assert encode_sequencer_read() == {"Read": "All"}
        with pytest.raises(ValueError):
            encode_sequencer_read("Everything")

    def test_read_all_response(self):
        kind, state = decode_sequencer_response({"Read": {"All": CHAIN_STATE}})
        assert kind == "All"
        assert isinstance(state, OnChainDaoState)
        assert state.routers == ["router.os"]

    def test_other_responses(self):
        assert decode_sequencer_response({"Read": {"Routers": ["a.os", "b.os"]}}) == ("Routers", ["a.os", "b.os"])
        assert decode_sequencer_response({"Read": "Dao"}) == ("Dao", None)
        assert decode_sequencer_response("Write") == ("Write", None)

    def test_rejects_unknown_response(self):
        with pytest.raises(MessageDecodeError):
            decode_sequencer_response({"Read": {"Nope": 1}})


class TestImageJobParameters:

    def test_serializes_into_run_job(self):
        params = ImageJobParameters(
            workflow="basic",
            positive_prompt="a lighthouse",
            cfg_scale={"min": 0, "max": 100},
            character={"id": "none"},
        )
        job = JobParameters.from_image_parameters(params)
        assert job.workflow == "basic"

        data = json.loads(job.parameters)
        assert data["positive_prompt"] == "a lighthouse"
        assert data["cfg_scale"] == {"min": 0, "max": 100}
        assert data["character"] == {"id": "none"}
        assert "styler" not in data

    def test_keeps_unknown_keys(self):
        params = ImageJobParameters.from_parameters_string(
            '{"workflow": "basic", "positive_prompt": "x", "seed": 5}'
        )
        assert json.loads(params.to_parameters_string())["seed"] == 5

    def test_rejects_inverted_cfg_scale(self):
        with pytest.raises(ValueError):
            ImageJobParameters(workflow="basic", positive_prompt="x", cfg_scale={"min": 10, "max": 1})

    @pytest.mark.parametrize("text", ["{not json", '{"workflow": "basic"}'])
    def test_from_parameters_string_errors(self, text):
        with pytest.raises(MessageDecodeError):
            ImageJobParameters.from_parameters_string(text)


class TestEnvelope:

    def test_blob_is_base64(self):
        envelope = MessageEnvelope.build(source="a.os@p:pkg:pub", body=None, blob=b"\xff\xd8jpeg")
        assert envelope.blob == "/9hqcGVn"
        assert envelope.blob_bytes() == b"\xff\xd8jpeg"

    def test_missing_blob(self):
        envelope = MessageEnvelope(source="a.os@p:pkg:pub", body="GetRollupState")
        assert envelope.is_request
        assert envelope.blob_bytes() is None

    def test_bad_base64(self):
        envelope = MessageEnvelope(source="a.os@p:pkg:pub", body=None, blob="***")
        with pytest.raises(MessageDecodeError):
            envelope.blob_bytes()
