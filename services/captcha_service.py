import secrets

from captcha.image import ImageCaptcha

# No 0/o, 1/l/i: the answer is compared case-insensitively
CAPTCHA_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"
CAPTCHA_LENGTH = 5
CAPTCHA_WIDTH = 160
CAPTCHA_HEIGHT = 60


def generate_text(length: int = CAPTCHA_LENGTH) -> str:
    return "".join(secrets.choice(CAPTCHA_ALPHABET) for _ in range(length))


def generate_challenge():
    """Return ``(answer, png_bytes)`` for a fresh distorted-text challenge."""
    text = generate_text()
    image = ImageCaptcha(width=CAPTCHA_WIDTH, height=CAPTCHA_HEIGHT)
    data = image.generate(text.upper())
    return text, data.getvalue()


def check_captcha(submitted, expected) -> bool:
    if not expected:
        return False
    return (submitted or "").strip().lower() == expected.lower()
