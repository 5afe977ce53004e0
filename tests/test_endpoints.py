from __future__ import annotations

from pathlib import Path
import sys
import unittest

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from advisor.config import AdvisorSettings
from advisor.main import create_app
from advisor.services.errors import NetworkError
from advisor.services.orchestrator import AdvisorOrchestrator
from test_orchestrator import FakeProvider

_PAYLOAD = {
    "summary": {"en": "RAV4 Hybrid fits", "zh": "RAV4 混动合适"},
    "recommendations": [{"car_id": "toyota-rav4-hybrid", "match_score": 0.9, "reasoning_en": "r", "reasoning_zh": "理"}],
    "next_steps": [{"title_en": "Test drive", "title_zh": "试驾", "priority": "high", "action_type": "visit"}],
}


def _client(*providers: FakeProvider) -> TestClient:
    app = create_app(settings=AdvisorSettings(), orchestrator=AdvisorOrchestrator(list(providers)))
    return TestClient(app)


class TestHealthz(unittest.TestCase):
    def test_reports_provider_selection(self) -> None:
        client = _client(FakeProvider("groq", api_key_present=False), FakeProvider("gemini"))
        res = client.get("/healthz")
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["service"], "rehui-advisor")
        self.assertTrue(data["all_valid"])
        self.assertEqual(data["primary_service"], "gemini")
        self.assertIsNone(data["fallback_service"])
        self.assertNotIn("provider_health", data)

    def test_deep_check(self) -> None:
        client = _client(FakeProvider("groq", healthy=False), FakeProvider("gemini", healthy=False))
        data = client.get("/healthz", params={"deep": "true"}).json()
        self.assertEqual(data["provider_health"], {"groq": False, "gemini": False})
        self.assertFalse(data["ok"])


class TestRecommendationsEndpoint(unittest.TestCase):
    def test_returns_normalized_response(self) -> None:
        groq = FakeProvider("groq", result=_PAYLOAD)
        res = _client(groq).post("/v1/recommendations", json={"message": "hybrid SUV", "language": "zh-CN"})
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(data["summary"]["zh"], "RAV4 混动合适")
        self.assertEqual(data["recommendations"][0]["car_id"], "toyota-rav4-hybrid")
        self.assertEqual(data["next_steps"][0]["action_type"], "visit")
        self.assertEqual(groq.calls, [("car_recommendation", "hybrid SUV", "zh")])

    def test_unknown_task_uses_recommendation(self) -> None:
        groq = FakeProvider("groq", result=_PAYLOAD)
        _client(groq).post("/v1/recommendations", json={"message": "x", "task": "poetry"})
        self.assertEqual(groq.calls[0][0], "car_recommendation")

    def test_buying_process_task(self) -> None:
        groq = FakeProvider("groq", result=_PAYLOAD)
        res = _client(groq).post("/v1/recommendations", json={"message": "first car", "task": "buying_process"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(groq.calls, [("buying_process", "first car", "en")])

    def test_failure_returns_default(self) -> None:
        client = _client(FakeProvider("groq", error=NetworkError("down")))
        data = client.post("/v1/recommendations", json={"message": "x"}).json()
        self.assertEqual(data["recommendations"], [])
        self.assertEqual(data["next_steps"][0]["id"], "default-1")

    def test_missing_message(self) -> None:
        res = _client(FakeProvider("groq")).post("/v1/recommendations", json={"language": "en"})
        self.assertEqual(res.status_code, 400)

    def test_consensus_flag(self) -> None:
        groq = FakeProvider("groq", result=_PAYLOAD)
        gemini = FakeProvider("gemini", result=_PAYLOAD)
        data = _client(groq, gemini).post("/v1/recommendations", json={"message": "x", "consensus": True}).json()
        self.assertEqual(data["summary"]["en"], "RAV4 Hybrid fits RAV4 Hybrid fits")
        self.assertEqual(len(data["recommendations"]), 1)
        self.assertEqual(len(gemini.calls), 1)


class TestChatEndpoint(unittest.TestCase):
    def test_appends_message_to_history(self) -> None:
        groq = FakeProvider("groq", chat_text="Sounds good")
        res = _client(groq).post(
            "/v1/chat",
            json={"messages": [{"type": "assistant", "content": "Hi"}], "message": "Need an SUV"},
        )
        self.assertEqual(res.json(), {"reply": "Sounds good", "provider": "groq", "degraded": False})
        history = groq.calls[0][1]
        self.assertEqual([(m.role, m.content) for m in history], [("assistant", "Hi"), ("user", "Need an SUV")])

    def test_empty_chat_is_rejected(self) -> None:
        self.assertEqual(_client(FakeProvider("groq")).post("/v1/chat", json={}).status_code, 400)


class TestUtilityEndpoints(unittest.TestCase):
    def test_summary(self) -> None:
        res = _client().post(
            "/v1/summary",
            json={"language": "en", "messages": [{"role": "user", "content": "reliable hybrid SUV"}]},
        )
        self.assertEqual(res.json(), {"summary": "User inquired about reliable, hybrid, suv", "language": "en"})

    def test_summary_without_user_input(self) -> None:
        res = _client().post("/v1/summary", json={"language": "zh"})
        self.assertEqual(res.json()["summary"], "暂无用户输入")

    def test_providers(self) -> None:
        data = _client(FakeProvider("groq"), FakeProvider("gemini", api_key_present=False)).get("/v1/providers").json()
        self.assertTrue(data["all_valid"])
        self.assertEqual([p["name"] for p in data["providers"]], ["groq", "gemini"])
        self.assertFalse(data["providers"][1]["available"])
        self.assertEqual(data["usage"]["groq"]["model"], "groq-model")

    def test_format_valid(self) -> None:
        res = _client().post("/v1/format", json={"response": _PAYLOAD, "language": "zh"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["summary"], "RAV4 混动合适")

    def test_format_invalid_is_422(self) -> None:
        res = _client().post("/v1/format", json={"response": {"summary": {"en": "x"}}}, headers={"X-Language": "zh"})
        self.assertEqual(res.status_code, 422)
        data = res.json()
        self.assertEqual(data["error"], "INVALID_PARAMETERS")
        self.assertTrue(data["message"].startswith("无效参数: "))


if __name__ == "__main__":
    unittest.main()
