"""Maintenance Banner - example add-on."""

from units import Unit


class MaintenanceBannerAddOn(Unit):
    """Prints a banner after the host finished initializing units."""

    def init(self) -> None:
        self.message = (self.manifest.description if self.manifest else "") or "Maintenance"

    def after_init(self) -> None:
        print(f"[{self.key}] {self.message}")
