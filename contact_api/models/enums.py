from enum import Enum


class ServiceType(str, Enum):
    """Service categories offered on the contact form"""

    ISOLAMENTO = "isolamento"  # thermal insulation
    ISOLAMENTO_METALICO = "isolamento-metalico"  # metal-clad insulation
    AR_CONDICIONADO = "ar-condicionado"
    DUTOS = "dutos"  # ductwork
    OUTROS = "outros"
