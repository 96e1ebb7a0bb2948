from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "ar"

# Fixed strings printed on labels, reports and export headers
TEXTS: Dict[str, Dict[str, str]] = {
    "ar": {
        "company_name": "نظام إدارة الإنتاج",
        "label_title": "ملصق رول",
        "report_title": "تقرير الرولات",
        "roll_number": "رقم الرول",
        "customer": "العميل",
        "production_order": "أمر الإنتاج",
        "order_number": "رقم الطلب",
        "item": "المنتج",
        "size": "المقاس",
        "stage": "المرحلة",
        "total_weight": "الوزن الكلي",
        "weight_kg": "الوزن (كجم)",
        "kg": "كجم",
        "printed": "طُبع",
        "date": "التاريخ",
        "roll_count": "عدد الرولات",
        "report_total_weight": "إجمالي الوزن",
        "created_by": "فيلم بواسطة",
        "printed_by": "طبع بواسطة",
        "cut_by": "قطع بواسطة",
        "cut_weight": "وزن التقطيع",
        "waste": "الهدر",
        "created_at": "تاريخ الإنشاء",
    },
    "en": {
        "company_name": "Production Management System",
        "label_title": "Roll Label",
        "report_title": "Rolls Report",
        "roll_number": "Roll No.",
        "customer": "Customer",
        "production_order": "Production Order",
        "order_number": "Order No.",
        "item": "Item",
        "size": "Size",
        "stage": "Stage",
        "total_weight": "Total Weight",
        "weight_kg": "Weight (kg)",
        "kg": "kg",
        "printed": "Printed",
        "date": "Date",
        "roll_count": "Roll Count",
        "report_total_weight": "Total Weight",
        "created_by": "Film By",
        "printed_by": "Printed By",
        "cut_by": "Cut By",
        "cut_weight": "Cut Weight",
        "waste": "Waste",
        "created_at": "Created At",
    },
}

assert all(set(table) == set(TEXTS[DEFAULT_LOCALE]) for table in TEXTS.values())


def resolve_locale(locale: Optional[str]) -> str:
    if locale in TEXTS:
        return locale
    if locale:
        logger.debug(f"Unsupported locale '{locale}', falling back to '{DEFAULT_LOCALE}'")
    return DEFAULT_LOCALE


def texts(locale: Optional[str]) -> Dict[str, str]:
    return TEXTS[resolve_locale(locale)]
