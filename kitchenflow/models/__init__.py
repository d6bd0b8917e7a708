from kitchenflow.models.tenant import Tenant
from kitchenflow.models.menu_category import MenuCategory
from kitchenflow.models.menu_item import MenuItem
from kitchenflow.models.order import Order, OrderItem, OrderStatus
from kitchenflow.models.ticket import KdsTicket, Station, TicketStatus
