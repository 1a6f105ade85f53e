# on-screen receipt, rendered as markdown for a MarkdownViewer
from sales.receipt import ReceiptDocument
from utils.pure import generate_markdown_table


def render_markdown(doc: ReceiptDocument) -> str:
    parts = [
        f"## {doc.shop_name}",
        f"### Order Receipt {doc.order_number}",
        "",
        f"Date: {doc.timestamp_display}  ",
        f"Cashier: {doc.cashier_name or '-'}  ",
        f"Status: {doc.status or '-'}",
        "",
    ]

    if doc.customer is not None:
        rows = [["Name", doc.customer.name], ["Code", doc.customer.code or "N/A"]]
        if doc.customer.phone:
            rows.append(["Phone", doc.customer.phone])
        if doc.customer.email:
            rows.append(["Email", doc.customer.email])
        parts += [
            "#### Customer",
            "",
            generate_markdown_table(["Field", "Value"], rows, ["l", "l"]),
            "",
        ]

    item_rows = []
    for line in doc.lines:
        name = line.product_name
        if line.comment:
            name += f" _(Note: {line.comment})_"
        item_rows.append(
            [
                name,
                line.quantity,
                doc.money(line.unit_price),
                f"-{line.discount_display}" if line.discount_display else "-",
                doc.money(line.line_total),
            ]
        )
    parts.append("#### Items")
    parts.append("")
    if item_rows:
        parts.append(
            generate_markdown_table(
                ["Product", "Qty", "Price", "Discount", "Total"],
                item_rows,
                ["l", "r", "r", "r", "r"],
            )
        )
    else:
        parts.append("_No items._")
    parts.append("")

    parts.append(f"**Subtotal:** {doc.money(doc.subtotal)}  ")
    if doc.order_discount_display:
        parts.append(f"**Order Discount:** -{doc.order_discount_display}  ")
    parts.append(f"**TOTAL:** {doc.money(doc.grand_total)}")
    parts.append("")
    parts.append("Thank you for your purchase!")
    return "\n".join(parts)
