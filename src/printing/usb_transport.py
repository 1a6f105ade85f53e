# USB bulk-out transport for thermal printers, over pyusb
from dataclasses import dataclass
from typing import Iterable, List, Optional

import usb.backend.libusb0
import usb.backend.libusb1
import usb.backend.openusb
import usb.core
import usb.util

from utils.errors import DeviceError, UnsupportedCapabilityError
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    vendor_id: int
    product_id: int
    description: str = ""

    def __str__(self) -> str:
        label = f"{self.vendor_id:04x}:{self.product_id:04x}"
        return f"{label} {self.description}".strip()


class UsbPrinterTransport:
    """An opened printer: configuration selected, interface 0 claimed."""

    def __init__(self, device, info: DeviceInfo, endpoint: int = 0x01) -> None:
        self._device = device
        self.info = info
        self.endpoint = endpoint

    def write(self, data: bytes) -> int:
        try:
            return self._device.write(self.endpoint, data)
        except usb.core.USBError as exc:
            raise DeviceError(f"Transfer to {self.info} failed: {exc}") from exc

    def close(self) -> None:
        try:
            usb.util.release_interface(self._device, 0)
        except usb.core.USBError as exc:
            _logger.debug(f"Releasing {self.info} failed: {exc}")
        usb.util.dispose_resources(self._device)


class UsbBackend:
    """
    Device discovery and opening through whichever libusb backend is installed.
    No backend means the thermal channel is unsupported on this machine.
    """

    def __init__(self) -> None:
        self._backend = self._load_backend()

    @staticmethod
    def _load_backend():
        for module in (usb.backend.libusb1, usb.backend.libusb0, usb.backend.openusb):
            backend = module.get_backend()
            if backend is not None:
                return backend
        return None

    @property
    def is_supported(self) -> bool:
        return self._backend is not None

    def find_devices(self, vendor_ids: Iterable[int]) -> List[DeviceInfo]:
        if not self.is_supported:
            raise UnsupportedCapabilityError("No USB backend (libusb) available")
        wanted = set(vendor_ids)
        found = usb.core.find(
            find_all=True,
            backend=self._backend,
            custom_match=lambda dev: dev.idVendor in wanted,
        )
        return [
            DeviceInfo(dev.idVendor, dev.idProduct, self._describe(dev))
            for dev in found or []
        ]

    @staticmethod
    def _describe(device) -> str:
        try:
            return usb.util.get_string(device, device.iProduct) or ""
        except (usb.core.USBError, ValueError):
            return ""

    def open(self, info: DeviceInfo, endpoint: int = 0x01) -> UsbPrinterTransport:
        if not self.is_supported:
            raise UnsupportedCapabilityError("No USB backend (libusb) available")
        device = usb.core.find(
            backend=self._backend, idVendor=info.vendor_id, idProduct=info.product_id
        )
        if device is None:
            raise DeviceError(f"Printer {info} is not plugged in")
        try:
            if device.is_kernel_driver_active(0):
                device.detach_kernel_driver(0)
        except (NotImplementedError, usb.core.USBError) as exc:
            # not every platform lets us query the kernel driver
            _logger.debug(f"Kernel driver check skipped for {info}: {exc}")
        try:
            device.set_configuration(1)
            usb.util.claim_interface(device, 0)
        except usb.core.USBError as exc:
            raise DeviceError(f"Could not open printer {info}: {exc}") from exc
        return UsbPrinterTransport(device, info, endpoint)
