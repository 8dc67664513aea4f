"""Weight tables, risk bands and advice lists for the screening pipelines.

All numbers here are placeholders with no clinical validation.
"""
from .classifier import RiskBands
from .scorer import FlagRule, ThresholdRule, WeightTable

VOICE_MODEL_VERSION = "voice-rules-v1"
TEXT_MODEL_VERSION = "text-rules-v1"

# Acoustic analysis
FRAME_MS = 64
HOP_MS = 10
PITCH_MIN_HZ = 75.0
PITCH_MAX_HZ = 400.0
ROLLOFF_FRACTION = 0.85
DEFAULT_SAMPLE_RATE_HZ = 16000

# Praat "Get jitter/shimmer (local)": shortest and longest period, max period and amplitude factors
PERIOD_FLOOR_S = 0.0001
PERIOD_CEILING_S = 0.02
MAX_PERIOD_FACTOR = 1.3
MAX_AMPLITUDE_FACTOR = 1.6

WAV_ENCODINGS = ("audio/wav", "audio/x-wav", "audio/wave", "wav")
PCM_ENCODINGS = ("audio/l16", "linear16", "pcm_s16le")
# container formats libsndfile cannot open; librosa hands them to audioread (ffmpeg)
COMPRESSED_ENCODINGS = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/webm": ".webm",
}

# Text screening: concept -> keywords (case-insensitive substring match)
SYMPTOM_KEYWORDS = {
    "fatigue": ("tired", "fatigue", "exhausted"),
    "polyuria": ("urinate", "urinating", "urination", "bathroom frequently"),
    "polydipsia": ("thirsty", "thirst"),
    "weightLoss": ("weight loss", "lost weight", "lost some weight", "losing weight"),
    "blurredVision": ("blurry", "blurred", "vision"),
    "numbness": ("numbness", "tingling"),
}
RISK_FACTOR_KEYWORDS = {
    "familyHistory": ("family history", "family has", "history of diabetes"),
    "overweight": ("overweight", "obese", "obesity"),
    "sedentaryLifestyle": ("don't exercise", "do not exercise", "no exercise", "never exercise", "sedentary"),
    "poorDiet": ("processed food", "sugary", "junk food", "fast food", "soft drinks"),
}
TEXT_FLAGS = tuple(SYMPTOM_KEYWORDS) + tuple(RISK_FACTOR_KEYWORDS)

# Voice biomarkers
VOICE_WEIGHTS = WeightTable(
    name="voice",
    rules=(
        ThresholdRule("jitter", threshold=0.01, weight=15, scale=100),
        ThresholdRule("shimmer", threshold=0.08, weight=20, scale=100),
        ThresholdRule("pitch.variation", threshold=0.0, weight=25, scale=10),
        ThresholdRule("energy", threshold=70.0, weight=20, scale=10, below=True),
        ThresholdRule("spectralFeatures.flux", threshold=0.4, weight=20, scale=10),
        FlagRule("familyHistory", weight=15),
        FlagRule("overweight", weight=15),
    ),
    floor=5.0,
    ceiling=95.0,
)

VOICE_BANDS = RiskBands(
    bands=(
        (0.0, 20.0, "low"),
        (20.0, 50.0, "moderate"),
        (50.0, 75.0, "high"),
        (75.0, float("inf"), "very high"),
    )
)

VOICE_ADVICE = {
    "low": [
        "Continue maintaining a healthy lifestyle",
        "Consider an annual diabetes screening",
    ],
    "moderate": [
        "Schedule a diabetes screening with your doctor in the next few weeks",
        "Reduce consumption of sugary foods and beverages",
        "Repeat the voice check in a quiet room to confirm the result",
    ],
    "high": [
        "Book a diabetes screening with your doctor soon",
        "Consider monitoring your blood glucose levels",
        "Limit intake of processed foods, sugary drinks, and high-carb meals",
    ],
    "very high": [
        "Schedule an appointment with your doctor immediately for diabetes screening",
        "Consider monitoring your blood glucose levels",
        "Limit intake of processed foods, sugary drinks, and high-carb meals",
        "Consider consulting with a dietitian for a personalized meal plan",
    ],
}

VOICE_RULES = (
    ("familyHistory", "Given your family history, consider more frequent diabetes screenings"),
    ("overweight", "Work towards a healthy weight with your healthcare provider"),
)

# Symptom / advice / transcript screening
TEXT_WEIGHTS = WeightTable(
    name="text",
    rules=(
        FlagRule("fatigue", weight=10),
        FlagRule("polyuria", weight=10),
        FlagRule("polydipsia", weight=10),
        FlagRule("weightLoss", weight=10),
        FlagRule("blurredVision", weight=10),
        FlagRule("numbness", weight=10),
        FlagRule("familyHistory", weight=15),
        FlagRule("age", weight=10, gate=40),
        FlagRule("overweight", weight=15),
        FlagRule("sedentaryLifestyle", weight=10),
        FlagRule("poorDiet", weight=10),
    ),
    floor=0.0,
    ceiling=100.0,
)

TEXT_BANDS = RiskBands(
    bands=(
        (0.0, 30.0, "low"),
        (30.0, 60.0, "medium"),
        (60.0, float("inf"), "high"),
    )
)

# Shared lifestyle advice, listed ahead of every text label's own lines
GENERAL_ADVICE = [
    "Maintain a balanced diet rich in fruits, vegetables, and whole grains",
    "Stay physically active with at least 150 minutes of moderate exercise per week",
    "Maintain a healthy weight",
    "Stay hydrated with water instead of sugary drinks",
    "Get regular check-ups with your healthcare provider",
]

TEXT_ADVICE = {
    "low": GENERAL_ADVICE + [
        "Continue maintaining a healthy lifestyle",
        "Consider annual diabetes screening, especially if you have risk factors",
        "Stay informed about diabetes prevention strategies",
    ],
    "medium": GENERAL_ADVICE + [
        "Schedule a diabetes screening with your doctor in the next few weeks",
        "Reduce consumption of sugary foods and beverages",
        "Incorporate more physical activity into your daily routine",
        "Monitor for changes in symptoms and seek medical advice if they worsen",
    ],
    "high": GENERAL_ADVICE + [
        "Schedule an appointment with your doctor immediately for diabetes screening",
        "Consider monitoring your blood glucose levels",
        "Limit intake of processed foods, sugary drinks, and high-carb meals",
        "Increase physical activity to at least 30 minutes daily",
        "Consider consulting with a dietitian for a personalized meal plan",
    ],
}

TEXT_RULES = (
    ("familyHistory", "Given your family history, consider more frequent diabetes screenings"),
    ("sedentaryLifestyle", "Gradually increase your physical activity levels, starting with short walks"),
    ("poorDiet", "Focus on reducing processed foods and added sugars in your diet"),
    ("overweight", "Work towards a healthy weight with your healthcare provider"),
    ("polydipsia", "Ask your doctor about a fasting blood glucose or HbA1c test"),
    ("polyuria", "Ask your doctor about a fasting blood glucose or HbA1c test"),
)
