from __future__ import annotations
from typing import List

from pydantic import BaseModel, Field


class CompanyInfo(BaseModel):
    name: str = "Lessy Communication Agency"
    address_lines: List[str] = Field(default_factory=lambda: [
        "RED DIAMOND GROUND FLOOR ROOM: 2, RUARAKA, OTERING ROAD",
        "Nairobi, Kenya",
    ])
    phone: str = "+254717321229"
    email: str = "admin@lessycommunications.co.ke"


class BankDetails(BaseModel):
    account_name: str = "LESSY COMMUNICATIONS AGEN"
    currency: str = "KES"
    account_number: str = "08544740008"
    bank_name: str = "Bank of Africa Kenya Limited"
    branch: str = "EMBAKASI"
    bank_code: str = "019"
    branch_code: str = "012"
    swift: str = "AFRIKENX"
    mpesa_paybill: str = "972900"
    mpesa_account: str = "08544740008"

    def lines(self) -> List[str]:
        return [
            f"A/C Name: {self.account_name}",
            f"Currency: {self.currency}",
            f"Account Number: {self.account_number}",
            f"Bank Name: {self.bank_name}",
            f"Branch: {self.branch}",
            f"Bank Code: {self.bank_code} · Branch Code: {self.branch_code} · Swift: {self.swift}",
            f"Mpesa Paybill: {self.mpesa_paybill} · Account: {self.mpesa_account}",
        ]


class BusinessProfile(BaseModel):
    """Sender block + payment details printed on every document."""

    company: CompanyInfo = Field(default_factory=CompanyInfo)
    bank: BankDetails = Field(default_factory=BankDetails)
