import secrets

def generate_otp():
    return f"{secrets.randbelow(1000000):06d}"

def verify_otp(otp: str, expected: str):
    if not otp or not expected:
        return False
    return secrets.compare_digest(str(otp), str(expected))
