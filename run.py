# run.py
import os
import sys
import subprocess
from pathlib import Path

# ==================== BANNER ====================
BANNER = r"""
   ┌┬┐┬─┐┌─┐┌┬┐┌─┐   ┬┌─┐┬ ┬┬─┐┌┐┌┌─┐┬
    │ ├┬┘├─┤ ││├┤    ││ ││ │├┬┘│││├─┤│
    ┴ ┴└─┴ ┴─┴┘└─┘  └┘└─┘└─┘┴└─┘└┘┴ ┴┴─┘
"""

print(BANNER)

BASE_DIR = Path(__file__).resolve().parent
VENV_DIR = BASE_DIR / "venv"
PYPROJECT = BASE_DIR / "pyproject.toml"

# ==================== HELPERS ====================
def run(cmd):
    subprocess.check_call(cmd, shell=False)

def venv_python():
    if os.name == "nt":
        return VENV_DIR / "Scripts" / "python.exe"
    return VENV_DIR / "bin" / "python"

# ==================== VENV CHECK ====================
if not VENV_DIR.exists():
    print("[+] No virtual environment found. Creating venv...")
    run([sys.executable, "-m", "venv", str(VENV_DIR)])
else:
    print("[✓] Virtual environment found.")

PYTHON = venv_python()

# ==================== INSTALL PROJECT ====================
print("[+] Upgrading pip...")
run([str(PYTHON), "-m", "pip", "install", "--upgrade", "pip"])

if PYPROJECT.exists():
    print("[+] Installing trade journal (editable)...")
    run([str(PYTHON), "-m", "pip", "install", "-e", str(BASE_DIR)])
else:
    print("[!] pyproject.toml not found, skipping install.")

# ==================== ENV SETUP ====================
os.environ.setdefault("PYTHONPATH", str(BASE_DIR))

# ==================== RUN UVICORN ====================
# host, port, reload and log level come from the app settings (.env)
print("[🚀] Starting Trade Journal API...\n")

run([str(PYTHON), "-m", "tradejournal.main"])
