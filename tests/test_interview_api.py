"""
Integration tests for /interview endpoints.
"""
from app.schemas.interview import HIRING_TIERS


def turn_reply(score=80, over=False, next_question="What is a channel?"):
    return {
        "feedback": "Good.",
        "score": score,
        "betterAnswer": "Better.",
        "nextQuestion": next_question,
        "isInterviewOver": over,
        "topicsCovered": ["Go"],
    }


REPORT = {
    "overallScore": 80,
    "strengths": ["Communication", "Fundamentals"],
    "weaknesses": ["Depth", "Examples"],
    "topicBreakdown": [{"topic": "Go", "score": 80}],
    "recommendation": "Hire with mentoring.",
    "nextSteps": ["One", "Two", "Three"],
    "hiringSuggestion": "Hire",
}


def submit(client, headers=None, **body):
    payload = {"role": "Go Developer", "currentQuestion": "Tell me about Go.", "userAnswer": "It is simple."}
    payload.update(body)
    return client.post("/interview/turn", json=payload, headers=headers or {})


def test_first_turn_creates_session(client, llm):
    llm.queue(turn_reply())

    response = submit(client, maxQuestions=5)

    assert response.status_code == 200
    data = response.json()
    assert data["sessionId"]
    assert data["questionIndex"] == 1
    assert data["isInterviewOver"] is False
    assert data["nextQuestion"] == "What is a channel?"
    assert data["finalReport"] is None


def test_three_turn_session_returns_final_report(client, llm):
    llm.queue(turn_reply(70), turn_reply(75), turn_reply(72), REPORT)

    responses = [submit(client, sessionId="abc", maxQuestions=3, questionIndex=i) for i in range(3)]

    assert [r.status_code for r in responses] == [200, 200, 200]
    last = responses[-1].json()
    assert last["isInterviewOver"] is True
    assert last["questionIndex"] == 3
    assert last["finalReport"]["hiringSuggestion"] in HIRING_TIERS
    assert last["finalReport"]["hiringSuggestion"] == "Hire"

    session = client.get("/interview/sessions/abc").json()
    assert session["status"] == "COMPLETE"
    assert len(session["transcript"]) == 6
    assert session["topicsCovered"] == ["Go"]


def test_delegate_failure_is_a_generic_500(client):
    response = submit(client)

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to process interview turn"


def test_blank_answer_is_rejected(client, llm):
    response = submit(client, userAnswer="   ")

    assert response.status_code == 422
    assert llm.calls == []


def test_unknown_category_is_rejected(client):
    response = submit(client, category="ASTROLOGY")

    assert response.status_code == 422


def test_category_spelling_is_normalized(client, llm):
    llm.queue(turn_reply())

    response = submit(client, sessionId="norm", category="system design", seniority="senior")

    assert response.status_code == 200
    session = client.get("/interview/sessions/norm").json()
    assert session["category"] == "SYSTEM_DESIGN"
    assert session["seniority"] == "SENIOR"


def test_hint_endpoint_records_once(client, llm):
    llm.queue({"hint": "Mention the scheduler."})
    body = {"sessionId": "h1", "currentQuestion": "What is a goroutine?", "role": "Go Developer"}

    first = client.post("/interview/hint", json=body)
    second = client.post("/interview/hint", json=body)

    assert first.status_code == 200
    assert first.json() == {"hint": "Mention the scheduler.", "sessionId": "h1", "questionNumber": 1}
    assert second.json()["hint"] == "Mention the scheduler."
    assert len(llm.calls) == 1


def test_hint_falls_back_when_delegate_fails(client):
    response = client.post("/interview/hint", json={"currentQuestion": "What is a goroutine?"})

    assert response.status_code == 200
    assert response.json()["hint"]
    assert response.json()["questionNumber"] is None


def test_session_not_found(client):
    assert client.get("/interview/sessions/missing").status_code == 404


def test_owned_session_is_private(client, llm, auth):
    llm.queue(turn_reply())
    assert submit(client, headers=auth("user_1"), sessionId="mine").status_code == 200

    assert client.get("/interview/sessions/mine", headers=auth("user_1")).status_code == 200
    assert client.get("/interview/sessions/mine").status_code == 403
    assert client.get("/interview/sessions/mine", headers=auth("user_2")).status_code == 403
    assert submit(client, headers=auth("user_2"), sessionId="mine").status_code == 403


def test_invalid_token_is_rejected(client):
    response = client.get("/interview/sessions/any", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
