"""
CFDI request payload as accepted by Facturama's ``POST /3/cfdis``.

Field names on the wire are PascalCase, but incoming keys match them
ignoring case. Every field defaults to the zero value of its type, and an
explicit null means the same as a missing key, so only the JSON structure is
checked here; tax and total consistency is Facturama's responsibility.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CfdiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True)

    @model_validator(mode="before")
    @classmethod
    def bind_keys(cls, data: Any) -> Any:
        """Map keys onto fields ignoring case; a null leaves the zero value in place."""
        if not isinstance(data, dict):
            return data

        fields = {}
        folded = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            fields[name] = fields[key] = field
            folded[key.lower()] = key

        bound = {}
        for key, value in data.items():
            if key not in fields:
                key = folded.get(key.lower(), key)
            field = fields.get(key)
            # GlobalInformation is the only field whose zero value is null
            if value is None and field is not None and field.default is not None:
                continue
            bound[key] = value
        return bound

    def to_facturama_json(self) -> bytes:
        """Canonical JSON body sent upstream (aliases, nulls dropped)."""
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


class GlobalInformation(CfdiModel):
    periodicity: str = Field("", alias="Periodicity", examples=["04"])
    months: str = Field("", alias="Months", examples=["07"])
    year: int = Field(0, alias="Year", examples=[2025])


class Receiver(CfdiModel):
    rfc: str = Field("", alias="Rfc", examples=["XAXX010101000"])
    cfdi_use: str = Field("", alias="CfdiUse", examples=["S01"])
    name: str = Field("", alias="Name", examples=["PUBLICO EN GENERAL"])
    fiscal_regime: str = Field("", alias="FiscalRegime", examples=["616"])
    tax_zip_code: str = Field("", alias="TaxZipCode", examples=["20160"])


class Tax(CfdiModel):
    name: str = Field("", alias="Name", examples=["IVA"])
    rate: float = Field(0.0, alias="Rate", examples=[0.16])
    base: float = Field(0.0, alias="Base", examples=[8767.24])
    total: float = Field(0.0, alias="Total", examples=[1402.76])
    is_retention: bool = Field(False, alias="IsRetention", examples=[False])
    is_federal_tax: bool = Field(False, alias="IsFederalTax", examples=[True])


class Item(CfdiModel):
    product_code: str = Field("", alias="ProductCode", examples=["31162800"])
    description: str = Field("", alias="Description", examples=["Ventas mes de Julio"])
    unit_code: str = Field("", alias="UnitCode", examples=["AS"])
    unit: str = Field("", alias="Unit", examples=["Variedad"])
    quantity: float = Field(0.0, alias="Quantity", examples=[1.0])
    unit_price: float = Field(0.0, alias="UnitPrice", examples=[8767.24])
    subtotal: float = Field(0.0, alias="Subtotal", examples=[8767.24])
    tax_object: str = Field("", alias="TaxObject", examples=["02"])
    taxes: list[Tax] = Field(default_factory=list, alias="Taxes")
    total: float = Field(0.0, alias="Total", examples=[10170.00])


class CfdiRequest(CfdiModel):
    """Invoice to stamp; ``GlobalInformation`` only applies to global invoices."""
    cfdi_type: str = Field("", alias="CfdiType", examples=["I"])
    payment_form: str = Field("", alias="PaymentForm", examples=["01"])
    payment_method: str = Field("", alias="PaymentMethod", examples=["PUE"])
    expedition_place: str = Field("", alias="ExpeditionPlace", examples=["20160"])
    global_information: GlobalInformation | None = Field(default=None, alias="GlobalInformation")
    receiver: Receiver = Field(default_factory=Receiver, alias="Receiver")
    items: list[Item] = Field(default_factory=list, alias="Items")
