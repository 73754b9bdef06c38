"""Booking domain - OTP-gated reservation workflow and public slot queries"""
