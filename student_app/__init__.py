"""Student application: daftar quiz dan laporan violation"""
