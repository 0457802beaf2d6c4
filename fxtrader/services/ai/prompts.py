"""
Prompt templates for chart analysis.

The product targets Indonesian traders, so personas and prompts are
written in Indonesian.
"""

import json
from typing import Any

DEFAULT_PERSONA = (
    "Anda adalah seorang analis perdagangan Forex ahli. "
    "Analisis gambar grafik Forex yang diberikan. "
    "Berikan rekomendasi perdagangan (BUY, SELL, atau WAIT) dan penjelasan rinci. "
    "Fokus pada pola teknikal, tren, support/resistance, dan risk/reward ratio."
)

EXPLANATION_PERSONA = (
    "Anda adalah analis teknikal profesional. Berikan penjelasan logis dan ringkas "
    "mengapa suatu rekomendasi trading dibuat berdasarkan analisis chart yang diberikan."
)

CONNECTION_TEST_PERSONA = "You are a helpful AI assistant."
CONNECTION_TEST_PROMPT = "Ketik: Test berhasil."

JSON_OUTPUT_INSTRUCTION = (
    "Jawab HANYA dengan JSON valid tanpa teks lain, dengan format: "
    '{"recommendation": "BUY" | "SELL" | "WAIT", '
    '"explanation": "<penjelasan>", '
    '"confidence": "rendah" | "sedang" | "tinggi"}'
)


def build_image_prompt() -> str:
    return (
        "Tolong analisis gambar chart ini dan berikan rekomendasi perdagangan.\n\n"
        f"{JSON_OUTPUT_INSTRUCTION}"
    )


def build_data_prompt(chart_data: Any) -> str:
    return (
        f"Tolong analisis data chart berikut: {json.dumps(chart_data, ensure_ascii=False)}\n\n"
        f"{JSON_OUTPUT_INSTRUCTION}"
    )


def build_explanation_prompt(recommendation: str) -> str:
    return f"""
Berdasarkan chart yang saya berikan, saya telah menerima rekomendasi untuk "{recommendation}".

Mohon jelaskan mengapa rekomendasi "{recommendation}" ini masuk akal berdasarkan:
1. Pola teknikal yang terlihat
2. Level support dan resistance
3. Indikator momentum
4. Trend yang sedang berlangsung
5. Risk/Reward ratio

Berikan penjelasan yang profesional namun mudah dipahami dalam bahasa Indonesia.""".strip()


CHART_CHECK_PERSONA = "Anda adalah AI yang bertugas memvalidasi gambar."


def build_chart_check_prompt() -> str:
    return (
        "Apakah gambar ini kemungkinan besar adalah sebuah grafik/chart keuangan atau trading "
        "(seperti grafik candlestick, line chart harga saham/forex)?\n"
        "Jawab HANYA dengan JSON valid dengan field 'isLikelyChart' (boolean) "
        "dan 'briefReasoning' (string).\n"
        'Contoh: {"isLikelyChart": true, "briefReasoning": "Gambar menampilkan grafik candlestick."}'
    )
