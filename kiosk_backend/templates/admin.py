ADMIN_HTML_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Orders</title>
  <style>
    body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif;margin:24px;background:#f7f7f8;color:#111}
    table{border-collapse:collapse;width:100%;background:#fff}
    th,td{border:1px solid #ddd;padding:6px 10px;text-align:left;font-size:14px}
    th{background:#111;color:#fff}
    tr.new td{background:#fffbe6}
    .muted{color:#666;font-size:12px}
  </style>
</head>
<body>
  <h2>Order overview</h2>
  <div class="muted">__COUNT__ orders &middot; live updates below</div>
  <table id="orders">
    <thead>
      <tr>
        <th>Order ID</th><th>Type</th><th>Kiosk</th><th>Item</th><th>Quantity</th>
        <th>Note</th><th>Time</th><th>Status</th>
      </tr>
    </thead>
    <tbody>
__ROWS__
    </tbody>
  </table>
<script>
  const body = document.querySelector("#orders tbody");
  const es = new EventSource("/admin/notifications");
  es.onmessage = (ev) => {
    const o = JSON.parse(ev.data);
    const rows = o.producten.map(p => {
      const tr = document.createElement("tr");
      tr.className = "new";
      [o.orderId, o.type, o.kiosk ?? "", p.item, p.quantity, p.opmerking || "",
       new Date(o.createdAt).toLocaleString(), o.status].forEach(v => {
        const td = document.createElement("td");
        td.textContent = v;
        tr.appendChild(td);
      });
      return tr;
    });
    rows.reverse().forEach(tr => body.prepend(tr));
  };
</script>
</body>
</html>
"""

ADMIN_ROW_TEMPLATE = (
    "      <tr><td>{order_id}</td><td>{type}</td><td>{kiosk}</td><td>{item}</td>"
    "<td>{quantity}</td><td>{opmerking}</td><td>{created}</td><td>{status}</td></tr>"
)
