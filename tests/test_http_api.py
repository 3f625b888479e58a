"""
Tests for the Flask HTTP API.

Services are wired with build_services() over temporary folders and a
scripted completion client, so every route runs end to end without
network access.
"""

import io
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from core.services import build_services
from interface.http_api import create_app
from llm.anthropic_client import CompletionResponse
from llm.errors import UpstreamError


class ScriptedClient:
    """Completion client that replays responses and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def complete(self, messages, system_prompt=None, tools=None, cancel_event=None):
        self.calls.append({"messages": messages, "system_prompt": system_prompt, "tools": tools})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def end_turn(text):
    return CompletionResponse(
        content=[{"type": "text", "text": text}],
        stop_reason="end_turn",
        input_tokens=10,
        output_tokens=2
    )


class HTTPTestCase(unittest.TestCase):

    debug = False

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.prospects = self.tmp / "prospects"
        self.completion = ScriptedClient()
        self.services = build_services(
            completion_client=self.completion,
            prospects_dir=self.prospects,
            brain_modules_dir=self.tmp / "brain_modules",
            max_workers=1,
            debug=self.debug
        )
        self.client = create_app(self.services).test_client()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")


class TestHealth(HTTPTestCase):

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(len(body["tools"]), 5)


class TestChat(HTTPTestCase):

    def test_plain_reply(self):
        self.completion.responses.append(end_turn("Hey! I'm Nitya"))

        response = self.post_json("/api/chat", {"messages": [{"role": "user", "content": "hi"}], "userId": "u1"})

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["content"], [{"type": "text", "text": "Hey! I'm Nitya"}])
        self.assertEqual(body["stop_reason"], "end_turn")

        call = self.completion.calls[0]
        self.assertTrue(call["system_prompt"].startswith("You are Nitya - "))
        self.assertIn("Current session: new (0 saved messages)", call["system_prompt"])
        self.assertEqual(len(call["tools"]), 5)

    def test_tool_round_through_http(self):
        self.post_json("/api/update-metadata", {"userId": "u1", "data": {"businessName": "Austin Tacos"}})
        self.completion.responses.extend([
            CompletionResponse(
                content=[{"type": "tool_use", "id": "toolu_1", "name": "read_metadata", "input": {"userId": "u1"}}],
                stop_reason="tool_use"
            ),
            end_turn("Austin Tacos, got it."),
        ])

        response = self.post_json("/api/chat", {"messages": [{"role": "user", "content": "remember me?"}], "userId": "u1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["content"][0]["text"], "Austin Tacos, got it.")
        tool_turn = self.completion.calls[1]["messages"][2]
        result = json.loads(tool_turn["content"][0]["content"])
        self.assertEqual(result["businessName"], "Austin Tacos")

    def test_default_user_id(self):
        self.completion.responses.append(end_turn("ok"))
        self.post_json("/api/chat", {"messages": [{"role": "user", "content": "hi"}]})
        self.assertIn("test_user_001", self.completion.calls[0]["system_prompt"])

    def test_disable_tools(self):
        self.completion.responses.append(end_turn("ok"))

        self.post_json("/api/chat", {
            "messages": [{"role": "user", "content": "hi"}],
            "userId": "u1",
            "disableTools": True
        })

        call = self.completion.calls[0]
        self.assertEqual(call["tools"], [])
        self.assertNotIn("## TOOLS:", call["system_prompt"])

    def test_validation_errors(self):
        cases = [
            ({}, "Messages array required"),
            ({"messages": "hi"}, "Messages array required"),
            ({"messages": []}, "Messages array cannot be empty"),
            ({"messages": [{"role": "user"}]}, "Each message must have role and content"),
            ({"messages": [{"role": "system", "content": "x"}]}, "Message role must be 'user' or 'assistant'"),
            ({"messages": [{"role": "user", "content": "x"}], "userId": "../x"}, "Invalid userId"),
        ]
        for payload, error in cases:
            with self.subTest(error=error):
                response = self.post_json("/api/chat", payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json(), {"error": error})
        self.assertEqual(self.completion.calls, [])

    def test_upstream_error_envelope(self):
        self.completion.responses.append(UpstreamError.from_status(500, "boom"))

        response = self.post_json("/api/chat", {"messages": [{"role": "user", "content": "hi"}]})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json(), {"error": "Failed to process chat message"})

    def test_unexpected_error_envelope(self):
        self.completion.responses.append(RuntimeError("kaboom"))

        response = self.post_json("/api/chat", {"messages": [{"role": "user", "content": "hi"}]})

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("details", response.get_json())


class TestChatDebug(HTTPTestCase):

    debug = True

    def test_details_in_debug_mode(self):
        self.completion.responses.append(UpstreamError.from_status(401, "invalid x-api-key"))

        response = self.post_json("/api/chat", {"messages": [{"role": "user", "content": "hi"}]})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json(), {
            "error": "Failed to process chat message",
            "details": "Anthropic API error (401): invalid x-api-key",
        })


class TestConversationRoutes(HTTPTestCase):

    def test_get_empty_conversation(self):
        response = self.client.get("/api/get-conversation/u1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["conversation"]["messages"], [])

    def test_save_then_get(self):
        messages = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

        response = self.post_json("/api/save-conversation", {
            "userId": "u1",
            "messages": messages,
            "approvedSection": {"section": "hero", "html": "<section>Hero</section>"}
        })
        self.assertEqual(response.get_json(), {"success": True, "messageCount": 2})

        conversation = self.client.get("/api/get-conversation/u1").get_json()["conversation"]
        self.assertEqual(conversation["messages"], messages)
        self.assertIn("hero", conversation["approvedSections"])

        session = self.client.get("/api/session/u1").get_json()["session"]
        self.assertEqual(session["sessionType"], "resumed")
        self.assertEqual(session["messageCount"], 2)

    def test_save_requires_user_id(self):
        response = self.post_json("/api/save-conversation", {"messages": []})
        self.assertEqual(response.status_code, 400)

    def test_invalid_user_id_in_path(self):
        response = self.client.get("/api/get-conversation/bad$id")
        self.assertEqual(response.status_code, 400)


class TestDataRoutes(HTTPTestCase):

    def test_update_sitemap(self):
        response = self.post_json("/api/update-sitemap", {"userId": "u1", "pages": ["Home", "About Us"]})

        self.assertEqual(response.status_code, 200)
        pages = response.get_json()["sitemap"]["pages"]
        self.assertEqual([p["slug"] for p in pages], ["home", "about-us"])

    def test_update_sitemap_requires_pages(self):
        response = self.post_json("/api/update-sitemap", {"userId": "u1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "userId and pages required"})

    def test_update_metadata_merges(self):
        self.post_json("/api/update-metadata", {"userId": "u1", "data": {"businessName": "Austin Tacos"}})
        response = self.post_json("/api/update-metadata", {"userId": "u1", "data": {"logo": "logo.png"}})

        metadata = response.get_json()["metadata"]
        self.assertEqual(metadata["businessName"], "Austin Tacos")
        self.assertEqual(metadata["logo"], "logo.png")

    def test_update_metadata_requires_data(self):
        response = self.post_json("/api/update-metadata", {"userId": "u1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "userId and data required"})


class TestAssetRoutes(HTTPTestCase):

    def upload(self, filename, content_type, data=b"\x89PNG"):
        return self.client.post(
            "/api/upload/u1",
            data={"file": (io.BytesIO(data), filename, content_type)},
            content_type="multipart/form-data"
        )

    def test_upload_list_delete(self):
        self.assertEqual(self.client.get("/api/list-assets/u1").get_json(), {"success": True, "files": []})

        response = self.upload("hero beach.jpg", "image/jpeg")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {
            "success": True,
            "url": "/prospects/u1/assets/hero_beach.jpg",
            "filename": "hero_beach.jpg",
        })

        files = self.client.get("/api/list-assets/u1").get_json()["files"]
        self.assertEqual(files, ["hero_beach.jpg"])

        response = self.client.delete("/api/delete/u1/hero_beach.jpg")
        self.assertEqual(response.status_code, 200)

        response = self.client.delete("/api/delete/u1/hero_beach.jpg")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "File not found")

    def test_upload_rejects_non_image(self):
        response = self.upload("notes.txt", "text/plain", b"hello")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Only images allowed")

    def test_upload_too_large(self):
        self.services.upload_max_bytes = 4
        response = self.upload("big.png", "image/png", b"0123456789")
        self.assertEqual(response.status_code, 413)

    def test_uploaded_asset_visible_to_tool(self):
        self.upload("logo.png", "image/png")
        result = self.services.registry.execute("read_user_assets", {"userId": "u1"})
        self.assertEqual(result.files, ["logo.png"])


if __name__ == '__main__':
    unittest.main()
