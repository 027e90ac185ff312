#!/usr/bin/env python3
"""Smoke test for the ratings API against a running server."""

import sys

import httpx


BASE_URL = "http://127.0.0.1:8001"


def create_session() -> str | None:
    print("=" * 60)
    print("Testing POST /sessions")
    print("=" * 60)

    payload = {
        "presenter": "Alice",
        "createdBy": "Smoke Test",
        "criteria": [
            {"id": "clarity", "label": "Clarity", "weight": 1},
            {"id": "content", "label": "Content Quality", "weight": 2},
        ],
    }

    try:
        response = httpx.post(f"{BASE_URL}/sessions", json=payload, timeout=10.0)
        response.raise_for_status()
        data = response.json()
        print(f"✅ Created session {data['id']} for {data['presenter']}")
        return data["id"]
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return None
    except Exception as e:
        print(f"❌ Error: {e}")
        return None


def submit_evaluations(session_id: str) -> bool:
    print("\n" + "=" * 60)
    print("Testing POST /evaluations")
    print("=" * 60)

    submissions = [
        ("Bob", {"clarity": 4, "content": 5}, 4.67),
        ("Eve", {"clarity": 2, "content": 3}, 2.67),
    ]
    try:
        for evaluator, ratings, overall in submissions:
            response = httpx.post(
                f"{BASE_URL}/evaluations",
                json={"sessionId": session_id, "evaluator": evaluator, "ratings": ratings, "overallScore": overall},
                timeout=10.0,
            )
            response.raise_for_status()
            latest = response.json()["evaluations"][-1]
            print(f"✅ {evaluator}: overall {latest['overallScore']:.2f}")
        return True
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return False


def show_summary(session_id: str) -> None:
    print("\n" + "=" * 60)
    print("Testing GET /sessions/{id}/summary")
    print("=" * 60)

    response = httpx.get(f"{BASE_URL}/sessions/{session_id}/summary", timeout=10.0)
    response.raise_for_status()
    data = response.json()
    print(f"Evaluations: {data['evaluationCount']}")
    if data["classAverage"] is not None:
        print(f"Class average: {data['classAverage']:.2f} / 5")
    for c in data["criteria"]:
        average = f"{c['average']:.2f}" if c["average"] is not None else "-"
        print(f"  {c['label']}: {average} ({c['count']} ratings)")


def delete_session(session_id: str) -> None:
    response = httpx.delete(f"{BASE_URL}/sessions/{session_id}", timeout=10.0)
    print(f"\nDELETE /sessions/{session_id} -> {response.status_code}")


def main():
    print("\n🚀 Testing Ratings API\n")

    try:
        response = httpx.get(f"{BASE_URL}/health", timeout=5.0)
        print(f"✅ Server is running (store={response.json().get('store')})\n")
    except Exception:
        print("❌ Server is not running!")
        print("   Please start it with: uvicorn classrate.main:app --reload --port 8001")
        sys.exit(1)

    session_id = create_session()
    if not session_id:
        sys.exit(1)

    if submit_evaluations(session_id):
        show_summary(session_id)
    delete_session(session_id)

    print("\n" + "=" * 60)
    print("✅ Smoke test complete!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
