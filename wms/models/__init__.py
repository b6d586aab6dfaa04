from wms.models.location import Location, Warehouse
from wms.models.product import OperationMode, Product, SerialNumber
from wms.models.inventory import InventoryRow
from wms.models.container import BarcodeSequence, Container, ContainerContent
from wms.models.transaction import InventoryTransaction, InventoryTransactionLine
from wms.models.count import CountItem, CountLocationResult, CountReport, CountScan
from wms.models.audit_log import AuditLog
