"""
Script untuk inisialisasi proyek
Membuat direktori dan file konfigurasi yang diperlukan
"""
import os
import shutil
from pathlib import Path


def init_project():
    """Initialize project structure"""
    print("Menginisialisasi proyek Kuis Pintar...")

    directories = [
        "data",
        "data/dismissed",
        "logs",
        "config"
    ]

    for directory in directories:
        Path(directory).mkdir(parents=True, exist_ok=True)
        print(f"[OK] Created directory: {directory}/")

    config_files = [
        ("config/teacher_config_template.json", "config/teacher_config.json"),
        ("config/student_config_template.json", "config/student_config.json")
    ]

    for template, target in config_files:
        if os.path.exists(target):
            print(f"[OK] Config file already exists: {target}")
        elif os.path.exists(template):
            shutil.copy(template, target)
            print(f"[OK] Created config file: {target}")
        else:
            print(f"[WARNING] Template not found: {template}")

    print("\n[OK] Inisialisasi selesai!")
    print("\nLangkah selanjutnya:")
    print("1. Isi teacher.id di config/teacher_config.json")
    print("2. Isi student.id dan student.name di config/student_config.json")
    print("3. Jalankan teacher app (server + notifikasi): python teacher_app/main.py")
    print("4. Lihat quiz siswa: python student_app/main.py quizzes")


if __name__ == "__main__":
    init_project()
