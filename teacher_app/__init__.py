"""Teacher application: violation channel server dan notifikasi violation"""
