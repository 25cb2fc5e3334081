"""List the models reachable with the Groq / Gemini keys from .env."""
import google.generativeai as genai
from groq import Groq

from app.core.config import settings


def check_groq():
    if not settings.GROQ_API_KEY:
        print("❌ GROQ_API_KEY not set")
        return
    print("🔌 Connecting to Groq...")
    try:
        client = Groq(api_key=settings.GROQ_API_KEY)
        models = client.models.list()
        for model in models.data:
            marker = "🌟" if model.id == settings.GROQ_MODEL else "✅"
            print(f"{marker} {model.id}")
    except Exception as e:
        print(f"❌ Groq Error: {e}")


def check_gemini():
    if not settings.GOOGLE_API_KEY:
        print("❌ GOOGLE_API_KEY not set")
        return
    print("🔍 Connecting to Gemini...")
    genai.configure(api_key=settings.GOOGLE_API_KEY)
    try:
        for m in genai.list_models():
            if "generateContent" in m.supported_generation_methods:
                print(f"✅ {m.name}")
    except Exception as e:
        print(f"❌ Gemini Error: {e}")


if __name__ == "__main__":
    check_groq()
    print("-" * 40)
    check_gemini()
