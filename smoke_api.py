"""Smoke run against a live server: python smoke_api.py [base_url]"""
import sys

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"


def check_health():
    for path in ("/health", "/api/health"):
        try:
            r = requests.get(f"{BASE_URL}{path}", timeout=10)
            print(f"Health {path}:", r.status_code, r.json())
        except Exception as e:
            print(f"Health {path} Failed:", e)


def check_verify_subject():
    r = requests.post(f"{BASE_URL}/api/verify-subject", json={"subject": "Mathematics"}, timeout=60)
    print("Verify Subject:", r.status_code, r.json())


def check_quiz_flow():
    payload = {"subject": "Mathematics", "subSubjects": ["Algebra", "Geometry"], "level": "hard"}
    print("Generating quiz...")
    r = requests.post(f"{BASE_URL}/api/generate-quiz", json=payload, timeout=120)
    print("Generate:", r.status_code)
    if r.status_code != 200:
        print("Error:", r.text)
        return

    data = r.json()
    print("Metadata:", data["metadata"])
    answers = [{**q, "userAnswer": q["correctAnswer"]} for q in data["questions"]]

    r = requests.post(f"{BASE_URL}/api/review-quiz", json={"userAnswers": answers}, timeout=120)
    print("Review:", r.status_code)
    if r.status_code == 200:
        result = r.json()
        print(f"Score: {result['score']}% ({result['correctAnswers']}/{result['totalQuestions']})")
        print("Reflection:", result["reflection"])
    else:
        print("Error:", r.text)


if __name__ == "__main__":
    check_health()
    check_verify_subject()
    check_quiz_flow()
