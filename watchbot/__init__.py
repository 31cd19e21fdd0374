"""Crypto Watch Notifier"""
