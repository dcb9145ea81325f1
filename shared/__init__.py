"""
Modul bersama Kuis Pintar: quiz lifecycle dan notifikasi security violation
"""
