print("Checking imports...")
try:
    import fastapi
    print(f"FastAPI {fastapi.__version__}: OK")
except ImportError as e:
    print(f"FastAPI Error: {e}")

try:
    import groq
    print("Groq: OK")
except ImportError as e:
    print(f"Groq Error: {e}")

try:
    import google.generativeai
    print("Gemini: OK")
except ImportError as e:
    print(f"Gemini Error: {e}")

try:
    from app.main import app
    print(f"App Import: OK ({len(app.routes)} routes)")
except Exception as e:
    print(f"App Import Error: {e}")

print("Done.")
